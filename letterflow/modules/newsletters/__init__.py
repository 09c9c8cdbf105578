"""
Newsletters Module
==================

Provides:
- sqlite storage for newsletters built in the editor
- HTML email rendering with per-recipient merge tags
- Test sends and publishing to all active subscribers
"""

from .models import (
    init_newsletters_db, get_newsletter, save_newsletter, validate_newsletter,
    set_newsletter_status, get_sends, get_active_subscribers,
)
from .renderer import render_newsletter, render_element, resolve_variables
from .delivery import send_test, publish

__all__ = [
    'init_newsletters_db', 'get_newsletter', 'save_newsletter', 'validate_newsletter',
    'set_newsletter_status', 'get_sends', 'get_active_subscribers',
    'render_newsletter', 'render_element', 'resolve_variables',
    'send_test', 'publish',
]
