"""
Letterflow - A Flask Newsletter Builder
=======================================

Drag-and-drop newsletter editing on top of Flask:
- Element tree editing with undo/redo per editor session
- Template and personalization catalogs
- sqlite storage, HTML email rendering, test sends and publishing

Usage:
    from flask import Flask
    from letterflow import Letterflow

    app = Flask(__name__)
    Letterflow(app)
"""

import os
import logging

__version__ = '0.1.0'
__author__ = 'Laurence Stephan'

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = {
    'builder': True,
    'email': True,
    'newsletters': True,
}


class Letterflow:
    """Flask extension wiring config, databases, email and the builder API"""

    def __init__(self, app=None, config=None):
        self.config = config or {}
        self.features = dict(DEFAULT_FEATURES)
        self.features.update(self.config.get('features', {}))
        self.registered_modules = []

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        from .core.config import Config
        from .core.database import Database

        # App config wins; fill the gaps from Config (env / .env)
        app.config.setdefault('DB_DIR', Config.DB_DIR)
        db_dir = app.config['DB_DIR']
        app.config.setdefault('USER_DB', os.path.join(db_dir, 'users.db'))
        app.config.setdefault('ANALYTICS_DB', os.path.join(db_dir, 'analytics_log.db'))
        for key in ('EMAIL_PROVIDER', 'EMAIL_ADDRESS', 'EMAIL_HOST', 'EMAIL_PORT',
                    'EMAIL_PASSWORD', 'RESEND_API_KEY', 'EMAIL_BRAND_NAME',
                    'EMAIL_WEBSITE_URL', 'BUILDER_DEFAULT_TEMPLATE', 'BUILDER_ALLOWED_ORIGINS',
                    'BUILDER_SESSION_TTL'):
            app.config.setdefault(key, getattr(Config, key))
        if not app.config.get('SECRET_KEY') and Config.SECRET_KEY:
            app.config['SECRET_KEY'] = Config.SECRET_KEY

        Database.ensure_dir(db_dir)

        if self.features.get('email'):
            from .modules.email import email_service
            email_service.init_app(app)
            self.registered_modules.append('email')

        if self.features.get('newsletters'):
            from .modules.newsletters import init_newsletters_db
            with app.app_context():
                init_newsletters_db()
            self.registered_modules.append('newsletters')

        if self.features.get('builder'):
            from .modules.builder import builder_bp
            from .modules.builder.session import session_store
            session_store.ttl = app.config['BUILDER_SESSION_TTL']
            app.register_blueprint(builder_bp)
            self.registered_modules.append('builder')

        app.extensions['letterflow'] = self
        logger.info(f"Letterflow initialised with modules: {', '.join(self.registered_modules)}")

    def get_registered_modules(self):
        return list(self.registered_modules)


__all__ = ['Letterflow', '__version__']
