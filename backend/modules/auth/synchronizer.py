"""
Auth synchronizer: reconciles identity provider events into the session store.

State machine:

    INIT -> SESSION_FOUND -> SIGNED_IN
    INIT -> SESSION_ABSENT
    SIGNED_IN  --TOKEN_REFRESHED / USER_UPDATED-->  SIGNED_IN (profile re-fetched)
    any        --SIGNED_OUT / USER_DELETED-->       SIGNED_OUT

Events are processed strictly one at a time, in delivery order. An event
is not started until the previous event's profile enrichment finished, so
a slow profile fetch can never overwrite the result of a newer one.

Navigation is never performed here. Each reconciliation returns a
NavigationIntent (or None) and an optional IntentRouter applies it.
"""

import asyncio
import contextlib
import logging
from typing import Callable, Optional

from shared.lifecycle import FetchScope

from .interfaces import IIdentityProvider, IProfileRepository
from .models import AuthEvent, AuthEventType, AuthPhase, AuthState, NavigationIntent, Session, UserProfile
from .navigation import (
    DASHBOARD_PAGE,
    LOGIN_PAGE,
    IntentRouter,
    is_auth_recovery_page,
    is_login_page,
)
from .store import SessionStore

logger = logging.getLogger(__name__)


class AuthSynchronizer:
    """
    Keeps a SessionStore in step with the identity provider.

    Usage:
        async with AuthSynchronizer(identity, profiles, store, location=get_path, router=router):
            ...  # application runs; events are reconciled in the background
    """

    def __init__(
        self,
        identity: IIdentityProvider,
        profiles: IProfileRepository,
        store: SessionStore,
        location: Callable[[], str] = lambda: "/",
        router: Optional[IntentRouter] = None,
        login_path: str = LOGIN_PAGE,
        dashboard_path: str = DASHBOARD_PAGE,
    ):
        self._identity = identity
        self._profiles = profiles
        self._store = store
        self._location = location
        self._router = router
        self._login_path = login_path
        self._dashboard_path = dashboard_path

        self._phase = AuthPhase.INIT
        self._recovery_active = False
        self._landing_redirect_done = False

        self._event_lock = asyncio.Lock()
        self._init_lock = asyncio.Lock()
        self._started = False
        self._queue: Optional[asyncio.Queue[AuthEvent]] = None
        self._worker: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._unsubscribe_store: Optional[Callable[[], None]] = None
        self._scope = FetchScope("auth-synchronizer")

    @property
    def phase(self) -> AuthPhase:
        return self._phase

    @property
    def recovery_active(self) -> bool:
        return self._recovery_active

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> Optional[NavigationIntent]:
        """
        Run the one-time initialization and start listening for events.

        Calling start() again is a no-op. A failure to read the initial
        session leaves the store signed out; it is never raised.
        """
        async with self._init_lock:
            if self._started:
                return None
            self._started = True

            loop = asyncio.get_running_loop()
            self._queue = asyncio.Queue()
            # Events that arrive during initialization are buffered and
            # handled after it, in order.
            self._unsubscribe = self._identity.subscribe(
                lambda event: loop.call_soon_threadsafe(self._queue.put_nowait, event)
            )
            self._unsubscribe_store = self._store.subscribe(self._on_store_change)

            intent = await self._initialize()
            self._worker = asyncio.create_task(self._drain())

        self._apply(intent)
        return intent

    async def stop(self) -> None:
        """Tear down: stop listening, cancel in-flight work, drop late results."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._unsubscribe_store is not None:
            self._unsubscribe_store()
            self._unsubscribe_store = None

        self._scope.close()

        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

    async def __aenter__(self) -> "AuthSynchronizer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def _initialize(self) -> Optional[NavigationIntent]:
        async with self._event_lock:
            self._store.set_loading(True)
            try:
                session = await self._scope.run(self._identity.get_session())
            except Exception:
                logger.warning("Initial session check failed; starting signed out", exc_info=True)
                session = None

            if self._scope.closed:
                return None

            if session is None:
                self._phase = AuthPhase.SESSION_ABSENT
                self._store.clear()
                logger.info("No existing session")
                return None

            self._phase = AuthPhase.SESSION_FOUND
            logger.info("Existing session found")
            return await self._enter_signed_in(session)

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def dispatch(self, event: AuthEvent) -> None:
        """Queue an event for in-order background processing."""
        if self._queue is None:
            raise RuntimeError("AuthSynchronizer.start() must be awaited before dispatching events")
        self._queue.put_nowait(event)

    async def drain(self) -> None:
        """Wait until every queued event has been reconciled."""
        if self._queue is not None:
            # Provider callbacks enqueue via call_soon_threadsafe; let them land first.
            await asyncio.sleep(0)
            await self._queue.join()

    async def handle_event(self, event: AuthEvent) -> Optional[NavigationIntent]:
        """
        Reconcile one event into the store and return the resulting intent.

        Concurrent callers are serialized.
        """
        async with self._event_lock:
            if self._scope.closed:
                return None

            logger.debug(f"Auth event {event.type.value} in phase {self._phase.value}")

            if event.session is None:
                return self._enter_signed_out()

            if event.type == AuthEventType.PASSWORD_RECOVERY:
                self._recovery_active = True

            return await self._enter_signed_in(event.session)

    async def refresh_profile(self) -> Optional[UserProfile]:
        """Re-read the signed-in user's profile into the store."""
        async with self._event_lock:
            session = self._store.session
            if session is None or self._scope.closed:
                return None
            profile = await self._load_profile(session)
            if profile is not None:
                self._store.update_profile(profile)
            return profile

    def _on_store_change(self, state: AuthState) -> None:
        # A sign-out whose provider call failed clears the store without a
        # SIGNED_OUT event; reconcile it like one.
        if self._phase == AuthPhase.SIGNED_IN and not state.is_authenticated and self._queue is not None:
            logger.debug("Session cleared locally; reconciling as sign-out")
            self._queue.put_nowait(AuthEvent(type=AuthEventType.SIGNED_OUT))

    async def _drain(self) -> None:
        assert self._queue is not None
        while True:
            event = await self._queue.get()
            try:
                self._apply(await self.handle_event(event))
            except Exception:
                logger.exception(f"Failed to reconcile auth event {event.type.value}")
            finally:
                self._queue.task_done()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _enter_signed_in(self, session: Session) -> Optional[NavigationIntent]:
        profile = await self._load_profile(session)
        if profile is None:
            return None

        previous = self._phase
        self._store.set_session(session, profile)
        self._phase = AuthPhase.SIGNED_IN

        if previous == AuthPhase.SIGNED_IN:
            return None
        return self._landing_intent()

    def _enter_signed_out(self) -> Optional[NavigationIntent]:
        already_signed_out = self._phase == AuthPhase.SIGNED_OUT
        self._phase = AuthPhase.SIGNED_OUT
        self._recovery_active = False
        self._landing_redirect_done = False
        self._store.clear()

        if already_signed_out:
            return None
        location = self._location()
        if is_auth_recovery_page(location) or is_login_page(location, self._login_path):
            return None
        return NavigationIntent(to=self._login_path, replace=True)

    def _landing_intent(self) -> Optional[NavigationIntent]:
        if self._landing_redirect_done or self._recovery_active:
            return None
        if not is_login_page(self._location(), self._login_path):
            return None
        self._landing_redirect_done = True
        return NavigationIntent(to=self._dashboard_path, replace=True)

    async def _load_profile(self, session: Session) -> Optional[UserProfile]:
        """
        Fetch the profile row for a session.

        A failed or empty fetch degrades to a minimal profile built from
        the session. Returns None only when the synchronizer was stopped
        while the fetch was in flight.
        """
        try:
            profile = await self._scope.run(
                asyncio.to_thread(self._profiles.get_by_id, session.user_id)
            )
        except Exception:
            logger.warning(
                f"Profile fetch failed for user {session.user_id}; using minimal profile",
                exc_info=True,
            )
            profile = None

        if self._scope.closed:
            return None

        if profile is None:
            return UserProfile.minimal(session)
        return profile

    def _apply(self, intent: Optional[NavigationIntent]) -> None:
        if self._router is not None:
            self._router.apply(intent)
