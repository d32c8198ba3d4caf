"""
Error taxonomy for Linkr.

Every failure the core can report is a `LinkError` subclass carrying:
    - kind:    stable machine-readable identifier (used by the web layer)
    - message: human-readable text that is safe to show to callers

Validation errors additionally subclass `ValueError` so callers that only
care about "bad input" can catch them generically.
"""

from typing import Optional


class LinkError(Exception):
    """Base class for all link-resolution errors."""

    kind = "link_error"
    default_message = "Link operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidUrl(LinkError, ValueError):
    kind = "invalid_url"
    default_message = "Invalid URL"


class InvalidCodeFormat(LinkError, ValueError):
    kind = "invalid_code_format"
    default_message = "Invalid short code"


class InvalidExpiry(LinkError, ValueError):
    kind = "invalid_expiry"
    default_message = "Expiry must be in the future"


class CodeTaken(LinkError):
    kind = "code_taken"
    default_message = "Short code already exists"


class GenerationExhausted(LinkError):
    kind = "generation_exhausted"
    default_message = "Failed to generate a unique short code"


class NotFound(LinkError):
    kind = "not_found"
    default_message = "URL not found"


class Expired(LinkError):
    kind = "expired"
    default_message = "URL has expired"


class StorageFailure(LinkError):
    """Raised for driver/I/O failures. The original exception is chained, never exposed."""

    kind = "storage_failure"
    default_message = "Database error"
