"""
Newsletter Delivery
===================

Send-test and publish. Neither touches an open editor document; both work
from a newsletter record (dict with name, subject, preview_text, elements).
"""

import logging

from letterflow.core.errors import DeliveryError, NewsletterNotFound, ValidationError
from letterflow.modules.email.email_service import is_valid_email
from .models import (
    get_active_subscribers, get_newsletter, record_send, set_newsletter_status,
)
from .renderer import render_newsletter, resolve_variables

logger = logging.getLogger(__name__)


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    from letterflow.core import db_log
    db_log(level, 'newsletters', message, details)


def _get_email_service():
    """The shared email service, or None if it has no sender configured"""
    from letterflow.modules.email.email_service import email_service
    if email_service.sender_email:
        return email_service
    return None


def send_test(record, to_email):
    """Send '[TEST] <subject>' of record to a single address.

    Merge tags render with the test address for email and their default
    text for everything else.
    """
    to_email = (to_email or '').strip()
    if not is_valid_email(to_email):
        raise ValidationError('Please enter a valid email address for the test send.',
                              {'email': to_email})

    subject = (record.get('subject') or '').strip()
    if not subject:
        raise ValidationError('Email subject is required to send a test.')

    svc = _get_email_service()
    if not svc or not svc.is_configured:
        raise DeliveryError('Email service not configured')

    html = render_newsletter(
        record.get('elements') or [],
        {'email': to_email},
        preview_text=record.get('preview_text') or '',
        newsletter_name=record.get('name'),
    )

    success = svc.send_email([to_email], f"[TEST] {subject}", html, email_type='newsletter_test')
    if not success:
        _db_log('error', 'Failed to send test newsletter', {'to': to_email, 'subject': subject})
        raise DeliveryError('Failed to send test email', {'to': to_email})

    logger.info(f"Test newsletter '{subject}' sent to {to_email}")
    _db_log('info', 'Test newsletter sent', {'to': to_email, 'newsletter_id': record.get('id')})
    return to_email


def publish(newsletter_id):
    """Mark a stored newsletter published and send it to every active subscriber.

    Returns {'sent': n, 'failed': m, 'total': n + m}.
    """
    newsletter = get_newsletter(newsletter_id)
    if not newsletter:
        raise NewsletterNotFound('Newsletter not found', {'id': newsletter_id})

    subject = (newsletter.get('subject') or '').strip()
    if not subject:
        raise ValidationError('Email subject is required to publish a newsletter.')

    svc = _get_email_service()
    if not svc or not svc.is_configured:
        raise DeliveryError('Email service not configured')

    subscribers = get_active_subscribers()
    if not subscribers:
        raise DeliveryError('No active subscribers found to send the newsletter to')

    if not set_newsletter_status(newsletter_id, 'published'):
        raise DeliveryError('Could not mark newsletter as published', {'id': newsletter_id})

    sent = 0
    failed = 0
    for subscriber in subscribers:
        email_addr = subscriber['email']
        try:
            html = render_newsletter(
                newsletter['elements'],
                resolve_variables(subscriber),
                preview_text=newsletter.get('preview_text') or '',
                newsletter_name=newsletter.get('name'),
            )
            success = svc.send_email([email_addr], subject, html,
                                     text_body=newsletter.get('preview_text') or None)

            if success:
                record_send(newsletter_id, email_addr, 'sent')
                sent += 1
            else:
                record_send(newsletter_id, email_addr, 'failed', 'Provider returned failure')
                failed += 1

        except Exception as e:
            logger.error(f"Error sending newsletter to {email_addr}: {e}")
            record_send(newsletter_id, email_addr, 'failed', str(e))
            failed += 1

    logger.info(f"Newsletter {newsletter_id} published: {sent} succeeded, {failed} failed")
    _db_log('info', 'Newsletter published', {
        'newsletter_id': newsletter_id, 'sent': sent, 'failed': failed
    })

    return {'sent': sent, 'failed': failed, 'total': sent + failed}
