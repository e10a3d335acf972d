"""Service error hierarchy for image generation, editing and export.

This module defines the exception hierarchy for service-level errors:
- ServiceError: Base for all service errors
- ImageServiceError: Failures of the external image service call
- TransientError: Retryable errors (network, rate limits, server errors)
- PermanentError: Non-retryable errors (credentials, validation, empty output)
- SafetyBlockedError: Content refused by the service's safety filters
"""

from typing import Optional


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


class ImageServiceError(ServiceError):
    """Base exception for external image service failures.

    Attributes:
        message: Human readable message suitable for display
        status_code: HTTP status reported by the service, if any
        details: Diagnostic string (e.g. "HTTP 429: Too Many Requests")
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class TransientError(ImageServiceError):
    """Transient error that may succeed on a later, user-initiated retry.

    Examples:
    - Network timeouts
    - Rate limit exceeded (429)
    - Server error (5xx)
    """

    retryable = True


class PermanentError(ImageServiceError):
    """Permanent error that will not succeed on retry.

    Examples:
    - Invalid or missing API key
    - Access forbidden (403)
    - Invalid request parameters (400)
    - Response without an image
    """

    retryable = False


class RateLimitError(TransientError):
    """Rate limit exceeded (429)."""

    pass


class UpstreamServerError(TransientError):
    """Image service returned a 5xx status."""

    pass


class ServiceNetworkError(TransientError):
    """Network timeout or connection failure."""

    pass


class InvalidRequestError(PermanentError):
    """Bad request (400): unsupported image format or overly complex prompt."""

    pass


class InvalidCredentialError(PermanentError):
    """Missing or rejected API key."""

    pass


class ForbiddenError(PermanentError):
    """Access forbidden (403)."""

    pass


class EmptyResponseError(PermanentError):
    """Service returned no candidates."""

    pass


class NoImageReturnedError(PermanentError):
    """Service answered without an image part."""

    pass


class SafetyBlockedError(ImageServiceError):
    """Content refused by the image service's safety classification.

    Attributes:
        categories: Human readable harm categories that triggered the block
    """

    retryable = False

    def __init__(self, message: str, categories: Optional[list[str]] = None):
        super().__init__(message)
        self.categories = list(categories or [])


class MockupNotFoundError(ServiceError):
    """No mockup with the requested id in the current set."""

    pass


class EditorBusyError(ServiceError):
    """An edit is already in flight for this mockup."""

    pass


class ExportError(ServiceError):
    """Building an export file failed."""

    pass


class NoImageToExportError(ExportError):
    """The mockup has no rendered image yet."""

    pass
