"""
Post-checkout subscription polling.

After Stripe redirects back to the payment success page, the webhook
may not have been processed yet. The poller re-reads the user's
subscription state on a fixed interval until it is active or the
attempt budget runs out.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from shared.config import get_settings
from shared.lifecycle import FetchScope

from modules.auth.models import PlanType, UserProfile
from modules.auth.store import SessionStore

from .interfaces import ISubscriptionRepository
from .models import PollOutcome, PollResult, SubscriptionState

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubscriptionPoller:
    """
    Waits for a subscription to become active.

    Interval and attempt budget default to the subscription_poll_*
    settings. ``sleep`` and ``clock`` are injectable so callers control time.
    Call close() when the page goes away; a pending wait then ends
    without touching the store.
    """

    def __init__(
        self,
        reader: ISubscriptionRepository,
        store: Optional[SessionStore] = None,
        interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        settings = get_settings()
        self._interval = settings.subscription_poll_interval if interval is None else interval
        self._max_attempts = settings.subscription_poll_max_attempts if max_attempts is None else max_attempts
        if self._max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._reader = reader
        self._store = store
        self._sleep = sleep
        self._clock = clock
        self._scope = FetchScope("subscription-poller")

    def close(self) -> None:
        self._scope.close()

    async def wait_for_activation(self, user_id: Optional[str] = None) -> PollResult:
        if user_id is None and self._store is not None and self._store.session is not None:
            user_id = self._store.session.user_id
        if user_id is None:
            logger.warning("No signed-in user; cannot verify subscription")
            return PollResult(outcome=PollOutcome.PENDING, attempts=0)

        state: Optional[SubscriptionState] = None
        for attempt in range(1, self._max_attempts + 1):
            if self._scope.closed:
                return PollResult(outcome=PollOutcome.PENDING, attempts=attempt - 1, state=state)

            try:
                fetched = await self._scope.run(
                    asyncio.to_thread(self._reader.get_subscription_state, user_id)
                )
            except Exception as e:
                logger.warning(f"Subscription check {attempt}/{self._max_attempts} failed: {e}")
                fetched = None

            if fetched is not None:
                state = fetched
                if state.is_active(self._clock()):
                    logger.info(f"Subscription active for user {user_id} after {attempt} attempt(s)")
                    self._apply_to_store(state)
                    return PollResult(outcome=PollOutcome.ACTIVE, attempts=attempt, state=state)

            if attempt < self._max_attempts:
                await self._sleep(self._interval)

        logger.info(f"Subscription for user {user_id} still pending after {self._max_attempts} attempts")
        return PollResult(outcome=PollOutcome.PENDING, attempts=self._max_attempts, state=state)

    def _apply_to_store(self, state: SubscriptionState) -> None:
        if self._store is None or self._scope.closed:
            return
        session = self._store.session
        if session is None or session.user_id != state.user_id:
            return
        profile = self._store.profile or UserProfile.minimal(session)
        self._store.update_profile(
            profile.model_copy(
                update={
                    "current_plan": PlanType.PRO,
                    "pro_subscription_active": state.pro_subscription_active,
                    "subscription_expires_at": state.subscription_expires_at,
                }
            )
        )
