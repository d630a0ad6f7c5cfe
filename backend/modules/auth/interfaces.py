"""
Authentication module interfaces.

Other modules should depend on these protocols, not the concrete
implementations. This enables testing with in-memory fakes and keeps
the Supabase SDK confined to identity.py and repository.py.
"""

from typing import Callable, Optional, Protocol, runtime_checkable

from shared.models import AuthenticatedUser

from .models import AuthEvent, Session, UserProfile


AuthEventListener = Callable[[AuthEvent], None]


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for server-side authentication operations.

    Used by the API layer to turn bearer tokens into users and
    to look up profiles.
    """

    async def validate_token(self, token: str) -> AuthenticatedUser:
        """
        Validate a JWT token and return the authenticated user.

        Args:
            token: JWT access token from Supabase Auth

        Returns:
            AuthenticatedUser with user ID and basic info

        Raises:
            AuthenticationError: If token is invalid or expired
        """
        ...

    async def get_user_by_id(self, user_id: str) -> Optional[UserProfile]:
        """
        Get a user's profile by their ID.

        Returns:
            UserProfile if found, None otherwise
        """
        ...

    async def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        """
        Get a user's profile by their email.

        Returns:
            UserProfile if found, None otherwise
        """
        ...


@runtime_checkable
class IProfileRepository(Protocol):
    """Storage contract for the ``users`` table."""

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        ...

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        ...

    def ensure_profile(self, user_id: str, email: Optional[str]) -> None:
        """Insert a default teacher/free row unless one already exists."""
        ...


@runtime_checkable
class IIdentityProvider(Protocol):
    """
    Contract the session runtime expects from the identity provider.

    Every method that talks to the provider is a suspension point.
    Failures are raised as auth module exceptions, never as SDK errors.
    """

    async def get_session(self) -> Optional[Session]:
        """Return the persisted session, or None when signed out."""
        ...

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        ...

    async def sign_out(self) -> None:
        ...

    def subscribe(self, listener: AuthEventListener) -> Callable[[], None]:
        """Register for auth state events; returns the unsubscribe callable."""
        ...

    async def set_session(self, access_token: str, refresh_token: str) -> Session:
        ...

    async def exchange_code_for_session(self, code: str) -> Session:
        ...

    async def verify_recovery_otp(self, email: str, token: str) -> Session:
        ...

    async def sign_up(self, email: str, password: str, redirect_to: str) -> None:
        ...

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        ...

    async def update_password(self, password: str) -> None:
        ...

    async def update_email(self, email: str) -> None:
        ...
