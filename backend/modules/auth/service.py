"""
Authentication service implementation.

Validates Supabase JWT tokens, reads user profiles and resends
verification emails on behalf of the frontend.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import jwt
from supabase import AuthError, Client

from shared.config import Settings, get_settings
from shared.database import get_supabase_client
from shared.models import AuthenticatedUser

from .exceptions import (
    ExpiredTokenError,
    InvalidTokenError,
    MissingTokenError,
)
from .identity import translate_auth_error
from .interfaces import IAuthService
from .models import JWTPayload, UserProfile
from .navigation import VERIFY_EMAIL_PAGE
from .repository import ProfileRepository

logger = logging.getLogger(__name__)


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    Uses Supabase JWT tokens for authentication and the ``users``
    table (through ProfileRepository) for profile storage.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        db: Optional[Client] = None,
    ):
        self._settings = settings or get_settings()
        self._db = db
        self._profiles: Optional[ProfileRepository] = None

    @property
    def profiles(self) -> ProfileRepository:
        if self._profiles is None:
            self._profiles = ProfileRepository(self._db or get_supabase_client())
        return self._profiles

    async def validate_token(self, token: str) -> AuthenticatedUser:
        """
        Validate a JWT token and return the authenticated user.

        This implementation validates Supabase JWTs using the JWT secret.
        """
        if not token:
            raise MissingTokenError()

        if not self._settings.supabase_jwt_secret:
            raise InvalidTokenError("Server authentication not configured")

        try:
            payload = jwt.decode(
                token,
                self._settings.supabase_jwt_secret,
                algorithms=["HS256"],
                audience="authenticated",
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        jwt_payload = JWTPayload(**payload)

        return AuthenticatedUser(
            id=jwt_payload.sub,
            email=jwt_payload.email or None,
            email_verified=jwt_payload.email_confirmed_at is not None,
            access_token=token,
            last_sign_in=datetime.fromtimestamp(jwt_payload.iat, tz=timezone.utc),
        )

    async def get_user_by_id(self, user_id: str) -> Optional[UserProfile]:
        """Get a user's profile by their ID."""
        return await asyncio.to_thread(self.profiles.get_by_id, user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        """Get a user's profile by their email."""
        return await asyncio.to_thread(self.profiles.get_by_email, email)

    async def resend_verification(self, email: str) -> None:
        """
        Resend the sign-up confirmation email.

        Raises:
            RateLimitedError: When the provider throttles the request
            IdentityProviderError: For any other provider failure
        """
        db = self._db or get_supabase_client()
        redirect_to = f"{self._settings.frontend_url.rstrip('/')}{VERIFY_EMAIL_PAGE}"
        try:
            await asyncio.to_thread(
                db.auth.resend,
                {"type": "signup", "email": email, "options": {"email_redirect_to": redirect_to}},
            )
        except AuthError as e:
            raise translate_auth_error(e, email=email) from e
        logger.info("Verification email resent")


# Module-level instance getter
_service_instance: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    global _service_instance
    if _service_instance is None:
        _service_instance = AuthService()
    return _service_instance


def reset_auth_service() -> None:
    """Reset the auth service singleton (for testing)."""
    global _service_instance
    _service_instance = None
