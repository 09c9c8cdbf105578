"""
Letterflow Core
===============

Core utilities and shared functionality for Letterflow modules.
"""

from .config import Config, get_setting
from .database import Database
from .errors import (
    BuilderError, UnknownElementType, PersonalizationError, ValidationError, DeliveryError,
    NewsletterNotFound,
)
from .logging_service import LoggingService, logger, db_log

__all__ = [
    'Config', 'get_setting', 'Database', 'LoggingService', 'logger', 'db_log',
    'BuilderError', 'UnknownElementType', 'PersonalizationError', 'ValidationError',
    'DeliveryError', 'NewsletterNotFound',
]
