"""
Letterflow Errors
=================

Shallow, user-facing error taxonomy. Not-found element ids are never errors;
element operations treat them as no-ops.
"""


class BuilderError(Exception):
    """Base class for errors surfaced to the editor user"""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self):
        payload = {'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class UnknownElementType(BuilderError, ValueError):
    """Raised when asked to build an element of a type the builder does not know"""


class PersonalizationError(BuilderError):
    """Merge tag rejected: ineligible element, unknown tag or unknown element"""


class ValidationError(BuilderError, ValueError):
    """Required newsletter metadata missing or invalid before save/publish"""


class DeliveryError(BuilderError):
    """Mail transport or storage failure during send-test/publish"""


class NewsletterNotFound(BuilderError, LookupError):
    """No stored newsletter with the requested id"""
