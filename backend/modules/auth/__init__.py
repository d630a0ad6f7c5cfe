"""
Authentication module.

Server side: JWT validation, profile lookup and verification email resend.
Client side: the session runtime (store, synchronizer, deep links and
account operations) that a UI shell embeds.

Public API:
- IAuthService, IIdentityProvider, IProfileRepository: Interfaces
- SessionStore, AuthSynchronizer: Session runtime
- create_session_runtime: Wires the runtime to the anon Supabase client
- Session, UserProfile, AuthEvent, NavigationIntent: Models
- Auth exceptions: InvalidCredentialsError, InvalidTokenError, etc.
"""

from .interfaces import IAuthService, IIdentityProvider, IProfileRepository
from .models import (
    AuthEvent,
    AuthEventType,
    AuthPhase,
    AuthState,
    JWTPayload,
    NavigationIntent,
    PlanType,
    Session,
    SignInResult,
    UserProfile,
    UserRole,
)
from .exceptions import (
    EmailNotConfirmedError,
    ExpiredLinkError,
    ExpiredTokenError,
    IdentityProviderError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidLinkError,
    InvalidTokenError,
    MissingTokenError,
    RateLimitedError,
    UserNotFoundError,
    WeakPasswordError,
)
from .store import SessionStore
from .synchronizer import AuthSynchronizer
from .runtime import SessionRuntime, create_session_runtime

__all__ = [
    # Interfaces
    "IAuthService",
    "IIdentityProvider",
    "IProfileRepository",
    # Runtime
    "SessionStore",
    "AuthSynchronizer",
    "SessionRuntime",
    "create_session_runtime",
    # Models
    "AuthEvent",
    "AuthEventType",
    "AuthPhase",
    "AuthState",
    "JWTPayload",
    "NavigationIntent",
    "PlanType",
    "Session",
    "SignInResult",
    "UserProfile",
    "UserRole",
    # Exceptions
    "EmailNotConfirmedError",
    "ExpiredLinkError",
    "ExpiredTokenError",
    "IdentityProviderError",
    "InsufficientPermissionsError",
    "InvalidCredentialsError",
    "InvalidLinkError",
    "InvalidTokenError",
    "MissingTokenError",
    "RateLimitedError",
    "UserNotFoundError",
    "WeakPasswordError",
]
