import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for Letterflow.
    Projects should provide database paths via environment variables.
    """
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Email settings
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'resend')
    EMAIL_ADDRESS = os.getenv("EMAIL_ADDRESS", "noreply@letterflow.app")
    EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
    EMAIL_HOST = os.getenv("EMAIL_HOST", "smtp.example.com")
    EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
    EMAIL_BRAND_NAME = os.getenv('EMAIL_BRAND_NAME', 'Letterflow')
    EMAIL_WEBSITE_URL = os.getenv('EMAIL_WEBSITE_URL', 'https://letterflow.app')

    # Resend API settings
    RESEND_API_KEY = os.getenv('RESEND_API_KEY') or os.getenv('RESEND')

    # Database paths - use environment variables or fallback to DB_DIR
    USER_DB = os.getenv('USER_DB', os.path.join(DB_DIR, "users.db"))
    ANALYTICS_DB = os.getenv('ANALYTICS_DB', os.path.join(DB_DIR, "analytics_log.db"))

    # Newsletter builder
    BUILDER_DEFAULT_TEMPLATE = os.getenv('BUILDER_DEFAULT_TEMPLATE', 'blank')
    # Seconds an idle editor session (and its undo history) is kept in memory
    BUILDER_SESSION_TTL = int(os.getenv('BUILDER_SESSION_TTL', '3600'))
    # Comma separated list of origins allowed to call the builder API
    BUILDER_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv('BUILDER_ALLOWED_ORIGINS', 'http://localhost:3000').split(',')
        if origin.strip()
    ]


def get_setting(key, default=None):
    """Resolve a setting from Flask app config, then Config, then the environment"""
    from flask import current_app
    try:
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)
