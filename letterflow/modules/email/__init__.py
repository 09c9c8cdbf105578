"""
Email Module
============

Provides email sending with Resend or SMTP, used for newsletter test sends
and publishing.
"""

from .email_service import EmailService, email_service, is_valid_email

__all__ = ['EmailService', 'email_service', 'is_valid_email']
