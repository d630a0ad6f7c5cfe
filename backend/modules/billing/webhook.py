"""
Stripe webhook reconciliation.

Turns a verified ``checkout.session.completed`` event into a Pro
subscription for the user whose email paid. All writes for one event
go through a single SubscriptionActivation, so the profile and the
payment history never disagree.

Note: delivery is not deduplicated. Stripe may deliver the same event
more than once; each delivery extends the expiry and appends a payment.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from shared.exceptions import EvalExpressError

from .interfaces import ISubscriptionRepository
from .models import (
    CHECKOUT_COMPLETED,
    CheckoutSessionObject,
    PaymentRecord,
    PaymentStatus,
    StripeEvent,
    SubscriptionActivation,
    WebhookResult,
)

logger = logging.getLogger(__name__)

DEFAULT_SUBSCRIPTION_DAYS = 30


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _received() -> WebhookResult:
    return WebhookResult(status_code=200, body={"received": True})


def _failed(status_code: int, message: str) -> WebhookResult:
    return WebhookResult(status_code=status_code, body={"error": message})


class WebhookReconciler:
    """
    Applies Stripe events to subscription state.

    Args:
        repository: Subscription storage (service-role access)
        clock: Returns the current UTC time; the expiry is computed from it
        subscription_days: Length of the Pro period granted per checkout
    """

    def __init__(
        self,
        repository: ISubscriptionRepository,
        clock: Callable[[], datetime] = utcnow,
        subscription_days: int = DEFAULT_SUBSCRIPTION_DAYS,
    ):
        self._repository = repository
        self._clock = clock
        self._subscription_days = subscription_days

    async def handle(self, event: StripeEvent) -> WebhookResult:
        if event.type != CHECKOUT_COMPLETED:
            logger.debug(f"Ignoring Stripe event {event.type}")
            return _received()
        return await self._checkout_completed(event.checkout_session())

    async def _checkout_completed(self, session: CheckoutSessionObject) -> WebhookResult:
        email = session.email
        if not email:
            logger.error(f"Checkout session {session.id} has no customer email")
            return _failed(400, "Missing customer email")

        try:
            user_id = await asyncio.to_thread(self._repository.find_user_id_by_email, email)
        except Exception:
            logger.exception(f"User lookup failed for checkout session {session.id}")
            return _failed(500, "User lookup failed")

        if user_id is None:
            logger.error(f"No user for checkout session {session.id}")
            return _failed(404, "User not found")

        activation = self.build_activation(user_id, email, session)
        try:
            await asyncio.to_thread(self._repository.activate_subscription, activation)
        except EvalExpressError as e:
            logger.error(f"Activation failed for user {user_id}: {e.message}")
            return _failed(500, "Update failed")

        logger.info(f"Pro subscription recorded for user {user_id} (session {session.id})")
        return _received()

    def build_activation(
        self,
        user_id: str,
        email: str,
        session: CheckoutSessionObject,
    ) -> SubscriptionActivation:
        now = self._clock()
        paid_at: Optional[datetime] = (
            datetime.fromtimestamp(session.created, tz=timezone.utc) if session.created else None
        )
        amount = Decimal(session.amount_total or 0) / 100

        return SubscriptionActivation(
            user_id=user_id,
            stripe_customer_id=session.customer,
            stripe_subscription_id=session.subscription,
            subscription_expires_at=now + timedelta(days=self._subscription_days),
            payment=PaymentRecord(
                user_id=user_id,
                email=email,
                stripe_customer_id=session.customer,
                stripe_subscription_id=session.subscription,
                amount=amount,
                currency=session.currency,
                status=PaymentStatus.SUCCEEDED,
                paid_at=paid_at or now,
            ),
        )
