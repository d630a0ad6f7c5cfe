"""
Base exception classes for the Eval Express backend.

The auth and billing modules raise subclasses of these bases. Each base
carries the HTTP status the API answers with, and the ``code`` doubles
as the key the session runtime uses to pick a user-facing message
(see ``modules/auth/messages.py``).

    NotFoundError           404  missing profile or resource
    ValidationError         400  bad email, weak password, missing customer email
    AuthenticationError     401  bad token, wrong credentials, dead links
    AuthorizationError      403  role checks
    ExternalServiceError    502  Supabase or Stripe failed on their side

Anything else derived from ``EvalExpressError`` is a 500.
"""

from typing import Optional, Any


class EvalExpressError(Exception):
    """
    Base exception for all Eval Express errors.

    ``details`` is copied, so subclasses may add keys without touching
    the caller's dict.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(EvalExpressError):
    """A profile or other stored record does not exist."""

    status_code = 404


class ValidationError(EvalExpressError):
    """Input rejected before any provider call was made."""

    status_code = 400


class AuthenticationError(EvalExpressError):
    """The caller could not be identified: token, credentials or link."""

    status_code = 401


class AuthorizationError(EvalExpressError):
    status_code = 403


class ExternalServiceError(EvalExpressError):
    """
    A call to Supabase or Stripe failed for reasons other than the input.

    ``service`` names the upstream (``supabase_auth``, ``stripe``) and is
    mirrored into ``details`` so it reaches the API error body.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
