"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface. Rows and provider
objects are validated here, at the boundary, so the rest of the code
only ever sees typed values.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class UserRole(str, Enum):
    """Application roles. Every account in this product is a teacher."""

    TEACHER = "teacher"


class PlanType(str, Enum):
    """Subscription plans."""

    FREE = "free"
    PRO = "pro"


class JWTPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    This matches the structure of Supabase Auth JWTs.
    """

    sub: str = Field(..., description="Subject (user ID)")
    email: Optional[str] = Field(None, description="User's email")
    email_confirmed_at: Optional[str] = Field(None, description="Email confirmation time")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    aud: str = Field(default="authenticated", description="Audience")
    role: str = Field(default="authenticated", description="Postgres role")

    # Supabase-specific claims
    app_metadata: dict = Field(default_factory=dict)
    user_metadata: dict = Field(default_factory=dict)


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class Session(BaseModel):
    """
    An authentication session: the token pair, its expiry and whose it is.

    Owned by the session store. Created on sign-in or token refresh,
    destroyed on sign-out or expiry.
    """

    access_token: str = Field(..., repr=False)
    refresh_token: str = Field(default="", repr=False)
    expires_at: Optional[datetime] = Field(None, description="Access token expiry (UTC)")
    user_id: str = Field(..., description="Identity ID")
    email: Optional[str] = Field(None, description="Email carried by the identity")

    model_config = {"frozen": True}

    @classmethod
    def from_provider(cls, session: Any) -> "Session":
        """Build a Session from a Supabase session object (or its dict form)."""
        user = _get(session, "user")
        expires_at = _get(session, "expires_at")
        return cls(
            access_token=_get(session, "access_token"),
            refresh_token=_get(session, "refresh_token") or "",
            expires_at=(
                datetime.fromtimestamp(expires_at, tz=timezone.utc)
                if isinstance(expires_at, (int, float))
                else expires_at
            ),
            user_id=_get(user, "id"),
            email=_get(user, "email"),
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.now(timezone.utc))


class UserProfile(BaseModel):
    """
    Application profile stored in the public ``users`` table.

    The subscription pair (``pro_subscription_active`` and
    ``subscription_expires_at``) is only ever written together.
    """

    id: str = Field(..., description="User ID (UUID), shared with the session")
    email: Optional[str] = Field(None, description="Email address")
    role: UserRole = Field(default=UserRole.TEACHER)
    current_plan: PlanType = Field(default=PlanType.FREE)
    pro_subscription_active: bool = Field(default=False)
    subscription_expires_at: Optional[datetime] = Field(None)
    stripe_customer_id: Optional[str] = Field(None)
    stripe_subscription_id: Optional[str] = Field(None)
    created_at: Optional[datetime] = Field(None)

    model_config = {"extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _legacy_plan_column(cls, data: Any) -> Any:
        # Rows created by older sign-up code carry ``subscription_plan``.
        if isinstance(data, dict) and not data.get("current_plan") and data.get("subscription_plan"):
            data = {**data, "current_plan": data["subscription_plan"]}
        if isinstance(data, dict) and data.get("role") is None:
            data = {**data, "role": UserRole.TEACHER}
        return data

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "UserProfile":
        return cls.model_validate(row)

    @classmethod
    def minimal(cls, session: Session) -> "UserProfile":
        """Profile derived from the session alone, used when the row can't be read."""
        return cls(
            id=session.user_id,
            email=session.email,
            role=UserRole.TEACHER,
            current_plan=PlanType.FREE,
            pro_subscription_active=False,
        )

    def has_active_subscription(self, now: Optional[datetime] = None) -> bool:
        if not self.pro_subscription_active:
            return False
        if self.subscription_expires_at is None:
            return False
        return self.subscription_expires_at > (now or datetime.now(timezone.utc))

    def needs_pro_subscription(self, now: Optional[datetime] = None) -> bool:
        return not self.has_active_subscription(now)


class AuthEventType(str, Enum):
    """Identity provider lifecycle events (Supabase auth state change names)."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


# Events after which there is, by definition, no session.
SESSION_ENDING_EVENTS = frozenset({AuthEventType.SIGNED_OUT, AuthEventType.USER_DELETED})


class AuthEvent(BaseModel):
    """One event from the identity provider's auth state stream."""

    type: AuthEventType
    session: Optional[Session] = None

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _drop_session_on_end(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("session") is not None:
            try:
                event_type = AuthEventType(data.get("type"))
            except ValueError:
                return data
            if event_type in SESSION_ENDING_EVENTS:
                data = {**data, "session": None}
        return data


class AuthPhase(str, Enum):
    """States of the auth synchronizer."""

    INIT = "INIT"
    SESSION_FOUND = "SESSION_FOUND"
    SESSION_ABSENT = "SESSION_ABSENT"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class NavigationIntent(BaseModel):
    """
    A navigation the caller should perform.

    Reconciliation code returns these instead of touching a router,
    so it can be exercised without a browser.
    """

    to: str = Field(..., description="Path, or absolute URL when external")
    replace: bool = Field(default=True, description="Replace the history entry")
    external: bool = Field(default=False, description="Leave the app (full page load)")

    model_config = {"frozen": True}


class AuthState(BaseModel):
    """Snapshot of the session store, broadcast to subscribers."""

    session: Optional[Session] = None
    profile: Optional[UserProfile] = None
    loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None


class SignInResult(BaseModel):
    """Outcome of a sign-in attempt. ``error`` is a user-facing message."""

    error_code: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_code is None
