"""
Session store: the single source of truth for "am I signed in, and who am I".

One store is created per application instance and injected wherever it
is needed; tests construct a fresh one per case. Every mutation is
broadcast to subscribers as an AuthState snapshot.
"""

import asyncio
import logging
from typing import Callable, Optional

from shared.exceptions import EvalExpressError

from .interfaces import IIdentityProvider
from .messages import message_for
from .models import AuthState, Session, SignInResult, UserProfile

logger = logging.getLogger(__name__)

StateListener = Callable[[AuthState], None]


class SessionStore:
    """
    Holds the current session and profile and notifies subscribers on change.

    The store never navigates and never raises from sign_in/sign_out;
    failures come back as values.
    """

    def __init__(self, identity: IIdentityProvider):
        self._identity = identity
        self._session: Optional[Session] = None
        self._profile: Optional[UserProfile] = None
        self._loading = True
        self._listeners: list[StateListener] = []
        self._sign_in_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._profile

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def is_signing_in(self) -> bool:
        return self._sign_in_lock.locked()

    def snapshot(self) -> AuthState:
        return AuthState(session=self._session, profile=self._profile, loading=self._loading)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Session store listener failed")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_session(self, session: Session, profile: UserProfile) -> None:
        self._session = session
        self._profile = profile
        self._loading = False
        self._notify()

    def update_profile(self, profile: UserProfile) -> None:
        """Replace the profile of the signed-in user. Ignored when signed out."""
        if self._session is None or profile.id != self._session.user_id:
            logger.debug("Ignoring profile update for a user who is not signed in")
            return
        self._profile = profile
        self._notify()

    def clear(self) -> None:
        self._session = None
        self._profile = None
        self._loading = False
        self._notify()

    def set_loading(self, loading: bool) -> None:
        if self._loading != loading:
            self._loading = loading
            self._notify()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> SignInResult:
        """
        Sign in with email and password.

        The session itself arrives through the identity provider's
        SIGNED_IN event, which the auth synchronizer reconciles into
        this store. A second call while one is pending is rejected.
        """
        if self._sign_in_lock.locked():
            return SignInResult(
                error_code="SIGN_IN_IN_PROGRESS",
                error=message_for("SIGN_IN_IN_PROGRESS"),
            )

        async with self._sign_in_lock:
            try:
                await self._identity.sign_in_with_password(email, password)
            except EvalExpressError as e:
                logger.info(f"Sign-in rejected: {e.code}")
                return SignInResult(error_code=e.code, error=message_for(e))
            except Exception:
                logger.exception("Unexpected sign-in failure")
                return SignInResult(
                    error_code="IDENTITY_PROVIDER_ERROR",
                    error=message_for("IDENTITY_PROVIDER_ERROR"),
                )
        return SignInResult()

    async def sign_out(self) -> None:
        """Sign out. Local state is cleared even if the provider call fails."""
        try:
            await self._identity.sign_out()
        except Exception:
            logger.warning("Identity provider sign-out failed; clearing local session anyway", exc_info=True)
        finally:
            self.clear()
