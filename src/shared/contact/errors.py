"""Error types raised by the contact gateway stages.

Each carries a user-safe message as ``detail``; internal details are
logged where the error is raised and never placed here.
"""

from typing import Dict, Optional
from fastapi import HTTPException, status


class ContactError(HTTPException):
    """Base class for every terminal outcome of the contact pipeline."""
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error."

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=self.default_status,
            detail=message or self.default_message,
            headers=headers,
        )


class MalformedRequest(ContactError):
    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request body."


class MissingCaptchaToken(ContactError):
    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Please complete the CAPTCHA verification."


class CaptchaVerificationFailed(ContactError):
    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "CAPTCHA verification failed. Please try again."


class CaptchaServiceUnavailable(ContactError):
    """The verification service could not be reached; the caller should retry."""
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Unable to verify CAPTCHA. Please try again later."


class ServerMisconfigured(ContactError):
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Server configuration error."


class ValidationError(ContactError):
    """A submitted field is missing, of the wrong type, too long or badly formatted."""
    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid submission."


class RateLimitExceeded(ContactError):
    default_status = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Rate limit exceeded. Please try again later."

    def __init__(self, retry_after: int, limit: int):
        super().__init__(headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": "0",
        })
        self.retry_after = retry_after


class RequestCancelled(ContactError):
    """The client went away before the submission was stored."""
    default_status = 499
    default_message = "Request cancelled."


class StorageFailure(ContactError):
    """Submission could not be persisted, or an unexpected error occurred."""
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error."
