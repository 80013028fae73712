"""
Application Error Types

Every failure a service can report maps to one of these classes. The
exception handlers in ``cafechain.main`` turn them into the standard
``{"success": false, "message": ...}`` envelope using ``status_code``.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AppError):
    """Missing or malformed request fields."""
    status_code = 400
    default_message = "Invalid input"


class InvalidCode(AppError):
    """Submitted OTP is wrong, expired or exhausted."""
    status_code = 400
    default_message = "Invalid OTP"


class Unauthorized(AppError):
    """Bad credentials or missing/invalid session."""
    status_code = 401
    default_message = "Unauthorized"


class NotFound(AppError):
    """Referenced entity does not exist."""
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    """Duplicate value for a unique key."""
    status_code = 409
    default_message = "Already exists"


class PayloadTooLarge(AppError):
    status_code = 413
    default_message = "Upload too large"


class UpstreamError(AppError):
    """Email or storage provider call failed."""
    status_code = 500
    default_message = "Upstream service failed"


class ServiceUnavailable(AppError):
    """Integration required by the operation is not configured."""
    status_code = 503
    default_message = "Service not configured"
