"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing str(exception).
    # The *args lets subclasses pass extra context. This is your base class - DON'T raise it directly!
    # Always use a specific subclass so callers (and the FastAPI handlers) can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    Raised when input data fails validation rules (wrong slot count,
    slot index out of range, malformed catalog records).

    HTTP Status: 422

    Example:
        raise ValidationError("Slot index 12 out of range (0-11)")
    """

    pass


class BusinessRuleViolation(DomainException):
    """A business rule was violated.

    HTTP Status: 400

    Example:
        raise BusinessRuleViolation("Selection is full (12/12 slots)")
    """

    pass


class InvalidStateException(DomainException):
    """Raised when an object is in an invalid state for the requested operation.

    Example: encoding a canvas while a save() scope is still open, or
    measuring text before the fonts are ready.
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    HTTP Status: 503 (Service Unavailable)

    Example:
        raise ConfigurationError("Spotify credentials not configured")
    """

    pass


class AuthenticationError(DomainException):
    """Caller is not authenticated or the bearer token expired.

    HTTP Status: 401
    """

    pass


class ExternalServiceError(DomainException):
    """External service (Spotify) returned an error.

    HTTP Status: 502 (Bad Gateway)

    Example:
        raise ExternalServiceError("Spotify API error: 503 Service Unavailable")
    """

    def __init__(self, message: str, http_status: int | None = None) -> None:
        super().__init__(message)
        self.http_status = http_status


class RateLimitExceededError(DomainException):
    """External service rate limit was exceeded.

    HTTP Status: 429
    """

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


# =============================================================================
# Render exceptions
# Hey future me - these are the failure modes of one playlist image export.
# Only ComposerBusyError ever reaches the caller of PlaylistComposer.generate();
# the others end the run in the FAILED state (or, for ArtworkLoadError, just
# skip one slot). The API layer still maps them in case a service raises them.
# =============================================================================


class RenderError(DomainException):
    """Base class for playlist image render failures."""

    pass


class TemplateLoadError(RenderError):
    """The background template asset is missing or cannot be decoded.

    Fatal for the export - no file is produced.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to load template {path}: {reason}")
        self.path = path
        self.reason = reason


class ArtworkLoadError(RenderError):
    """A single slot's artwork failed to download or decode.

    Non-fatal: the slot is skipped, sibling slots are unaffected.
    """

    def __init__(self, slot_index: int, url: str, reason: str) -> None:
        super().__init__(f"Artwork for slot {slot_index} failed ({url}): {reason}")
        self.slot_index = slot_index
        self.url = url
        self.reason = reason


class EncodingError(RenderError):
    """The canvas could not be serialized to PNG (or produced no bytes)."""

    pass


class CanvasUnavailableError(RenderError):
    """The drawing surface could not be acquired."""

    pass


class ComposerBusyError(RenderError):
    """An export is already in flight on this composer.

    HTTP Status: 409 (Conflict)
    """

    def __init__(
        self, message: str = "A playlist image is already being generated"
    ) -> None:
        super().__init__(message)


__all__ = [
    # Base
    "DomainException",
    # Validation / business rules
    "ValidationError",
    "BusinessRuleViolation",
    "InvalidStateException",
    # Configuration / auth / external
    "ConfigurationError",
    "AuthenticationError",
    "ExternalServiceError",
    "RateLimitExceededError",
    # Render
    "RenderError",
    "TemplateLoadError",
    "ArtworkLoadError",
    "EncodingError",
    "CanvasUnavailableError",
    "ComposerBusyError",
]
