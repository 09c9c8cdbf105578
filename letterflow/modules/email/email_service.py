"""
Email Service Module
====================

Configurable email service supporting Resend and SMTP.
Provider is selected via EMAIL_PROVIDER config ('resend' or 'smtp').
Every attempt is logged to the email_logs table in USER_DB.
"""

import os
import re
import logging
import smtplib
import sqlite3
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

# Rejects consecutive dots, leading/trailing dots in local part
VALID_EMAIL = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

logger = logging.getLogger(__name__)

# Try to import resend - it's optional
try:
    import resend
    RESEND_AVAILABLE = True
except ImportError:
    RESEND_AVAILABLE = False
    logger.info("resend package not installed.")


def is_valid_email(address):
    return bool(address) and bool(VALID_EMAIL.match(address))


class EmailService:
    """
    Configurable email service supporting Resend and SMTP.

    Configuration (set in Flask app.config):
        EMAIL_PROVIDER: 'resend' (default) or 'smtp'
        RESEND_API_KEY: Your Resend API key (required if provider is 'resend')
        EMAIL_HOST: SMTP server host (only needed if provider is 'smtp')
        EMAIL_PORT: SMTP server port (default: 587)
        EMAIL_PASSWORD: SMTP password (required if provider is 'smtp')
        EMAIL_ADDRESS: Sender email address
        EMAIL_BRAND_NAME: Brand name shown in newsletter footers
        EMAIL_WEBSITE_URL: Website URL shown in newsletter footers
        USER_DB: Path to SQLite database for email logs
    """

    def __init__(self, app=None):
        self.provider = 'resend'
        self.api_key = None
        self.sender_email = None
        self.brand_name = 'Letterflow'
        self.website_url = 'https://letterflow.app'
        self.user_db = None
        self.smtp_host = None
        self.smtp_port = 587
        self.smtp_password = None
        self.send_delay = 0.6

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize email service with Flask app configuration"""
        self.provider = (app.config.get('EMAIL_PROVIDER') or 'resend').lower()
        logger.info(f"=== INITIALIZING EMAIL SERVICE (provider: {self.provider}) ===")

        self.sender_email = app.config.get('EMAIL_ADDRESS', 'noreply@letterflow.app')
        self.brand_name = app.config.get('EMAIL_BRAND_NAME', 'Letterflow')
        self.website_url = app.config.get('EMAIL_WEBSITE_URL', 'https://letterflow.app')
        self.user_db = app.config.get('USER_DB')
        self.send_delay = float(app.config.get('EMAIL_SEND_DELAY', 0.6))

        logger.info(f"Sender email: {self.sender_email}")

        if self.provider == 'smtp':
            self._init_smtp(app)
        else:
            self._init_resend(app)

    def _init_resend(self, app):
        """Initialize Resend provider"""
        self.api_key = app.config.get('RESEND_API_KEY')

        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured - email sending disabled")
            return

        if not RESEND_AVAILABLE:
            logger.error("resend package not installed")
            return

        resend.api_key = self.api_key
        logger.info("Resend API client initialized successfully")

    def _init_smtp(self, app):
        """Initialize SMTP provider"""
        self.smtp_host = app.config.get('EMAIL_HOST', 'smtp.example.com')
        self.smtp_port = int(app.config.get('EMAIL_PORT', 587))
        self.smtp_password = app.config.get('EMAIL_PASSWORD')

        if not self.smtp_password:
            logger.warning("EMAIL_PASSWORD not configured - SMTP email sending disabled")
            return

        logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")

    @property
    def is_configured(self):
        if not self.sender_email:
            return False
        if self.provider == 'smtp':
            return bool(self.smtp_password)
        return bool(self.api_key) and RESEND_AVAILABLE

    def _get_db_path(self):
        if self.user_db:
            return self.user_db
        return os.getenv('USER_DB', 'users.db')

    def _log_email(self, recipient: str, subject: str, email_type: str,
                   status: str, error_message: str = None):
        """Log email attempt to database"""
        try:
            with sqlite3.connect(self._get_db_path()) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS email_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        recipient TEXT NOT NULL,
                        subject TEXT NOT NULL,
                        email_type TEXT,
                        status TEXT NOT NULL,
                        error_message TEXT,
                        sent_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                cursor.execute("""
                    INSERT INTO email_logs (recipient, subject, email_type, status, error_message)
                    VALUES (?, ?, ?, ?, ?)
                """, (recipient, subject, email_type, status, error_message))
                conn.commit()
        except Exception as e:
            logger.error(f"Failed to log email to database: {e}")

    def send_email(self, to: List[str], subject: str, html_body: str,
                   text_body: Optional[str] = None, email_type: str = 'newsletter') -> bool:
        """
        Send an email to each recipient via the configured provider.

        Returns:
            bool: True if at least one email was sent successfully, False otherwise
        """
        if not to:
            logger.error("No recipients provided")
            return False

        if not self.sender_email:
            logger.error("Sender email not configured")
            return False

        valid_recipients = []
        for addr in to:
            if is_valid_email(addr):
                valid_recipients.append(addr)
            else:
                logger.warning(f"Skipping invalid email address: {addr}")

        if not valid_recipients:
            logger.error("No valid recipients after filtering")
            return False

        sent_count = 0
        failed_count = 0
        for i, recipient in enumerate(valid_recipients):
            logger.info(f"Sending '{subject}' from {self.sender_email} to {recipient}")

            try:
                if self.provider == 'smtp':
                    success = self._send_via_smtp(recipient, subject, html_body, text_body)
                else:
                    success = self._send_via_resend(recipient, subject, html_body, text_body)

                if success:
                    self._log_email(recipient, subject, email_type, 'sent', None)
                    sent_count += 1
                else:
                    self._log_email(recipient, subject, email_type, 'failed', 'Provider returned failure')
                    failed_count += 1

                # Rate limit between sends
                if i < len(valid_recipients) - 1 and self.send_delay:
                    time.sleep(self.send_delay)

            except Exception as send_error:
                logger.error(f"Error sending to {recipient}: {send_error}")
                self._log_email(recipient, subject, email_type, 'failed', str(send_error))
                failed_count += 1

        if failed_count > 0:
            logger.warning(f"Email send completed with errors: {sent_count} sent, {failed_count} failed")
        else:
            logger.info(f"Email sent successfully to {sent_count} recipients: {subject}")

        return sent_count > 0

    def _send_via_resend(self, recipient: str, subject: str, html_body: str,
                         text_body: Optional[str] = None) -> bool:
        """Send a single email via Resend API"""
        if not RESEND_AVAILABLE:
            logger.error("resend package not installed")
            return False

        if not self.api_key:
            logger.error("Resend API key not configured")
            return False

        email_params = {
            "from": self.sender_email,
            "to": recipient,
            "subject": subject,
            "html": html_body
        }
        if text_body:
            email_params["text"] = text_body

        r = resend.Emails.send(email_params)
        logger.info(f"Resend response: {r}")

        if r and r.get('id'):
            return True
        logger.error(f"Resend error for {recipient}: {r}")
        return False

    def _send_via_smtp(self, recipient: str, subject: str, html_body: str,
                       text_body: Optional[str] = None) -> bool:
        """Send a single email via SMTP"""
        if not self.smtp_password:
            logger.error("SMTP password not configured")
            return False

        msg = MIMEMultipart('alternative')
        msg['From'] = self.sender_email
        msg['To'] = recipient
        msg['Subject'] = subject

        if text_body:
            msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.sender_email, self.smtp_password)
                server.send_message(msg)

            logger.info(f"SMTP email sent to {recipient}")
            return True
        except Exception as e:
            logger.error(f"SMTP error for {recipient}: {e}")
            return False


# Shared instance, configured by Letterflow.init_app
email_service = EmailService()
