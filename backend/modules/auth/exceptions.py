"""
Authentication module exceptions.

These exceptions are raised by the auth module and can be caught
by API error handlers or the session runtime to produce appropriate
HTTP responses or user-facing messages.
"""

from typing import Optional

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    ValidationError,
)


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT token is invalid or malformed."""

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message, code="INVALID_TOKEN")


class ExpiredTokenError(AuthenticationError):
    """Raised when a JWT token has expired."""

    def __init__(self, message: str = "Authentication token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class MissingTokenError(AuthenticationError):
    """Raised when no authentication token is provided."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="MISSING_TOKEN")


class InvalidCredentialsError(AuthenticationError):
    """Raised when the email/password pair is rejected."""

    def __init__(self, message: str = "Invalid login credentials"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class EmailNotConfirmedError(AuthenticationError):
    """Raised when signing in before the verification link was used."""

    def __init__(self, message: str = "Email not confirmed"):
        super().__init__(message, code="EMAIL_NOT_CONFIRMED")


class RateLimitedError(AuthenticationError):
    """Raised when the identity provider throttles the caller."""

    status_code = 429

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message, code="RATE_LIMITED")


class UserNotFoundError(AuthenticationError):
    """Raised when the user doesn't exist in the identity provider or database."""

    def __init__(self, user_ref: str):
        super().__init__(
            f"User not found: {user_ref}",
            code="USER_NOT_FOUND",
            details={"user": user_ref},
        )


class InsufficientPermissionsError(AuthorizationError):
    """Raised when user lacks required permissions."""

    def __init__(self, required_role: str, user_role: str):
        super().__init__(
            f"Insufficient permissions. Required: {required_role}, has: {user_role}",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required_role": required_role, "user_role": user_role},
        )


class IdentityProviderError(ExternalServiceError):
    """Raised for provider failures that are not a credential problem."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(
            message,
            service="supabase_auth",
            code="IDENTITY_PROVIDER_ERROR",
            details={"status": status} if status is not None else {},
        )


class WeakPasswordError(ValidationError):
    """Raised when a new password fails the strength rules."""

    def __init__(self, message: str = "Password does not meet the strength requirements"):
        super().__init__(message, code="WEAK_PASSWORD")


class InvalidLinkError(AuthenticationError):
    """Raised when a verification or recovery link is malformed or rejected."""

    def __init__(self, message: str = "Invalid or missing link"):
        super().__init__(message, code="INVALID_LINK")


class ExpiredLinkError(AuthenticationError):
    """Raised when a one-time link has expired."""

    def __init__(self, message: str = "Link has expired"):
        super().__init__(message, code="LINK_EXPIRED")
