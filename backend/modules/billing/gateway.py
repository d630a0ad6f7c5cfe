"""
Stripe gateway.

The only place that talks to the Stripe SDK. Stripe errors are turned
into billing exceptions here; the secret key is passed per call and
never logged.
"""

import logging
from typing import Optional

import stripe

from modules.auth.navigation import PAYMENT_CANCEL_PAGE, PAYMENT_SUCCESS_PAGE
from shared.config import Settings, get_settings

from .exceptions import CheckoutUnavailableError, PaymentFailedError, WebhookVerificationError
from .interfaces import IPaymentGateway
from .models import CheckoutSession, StripeEvent

logger = logging.getLogger(__name__)

SUCCESS_PATH = f"{PAYMENT_SUCCESS_PAGE}?session_id={{CHECKOUT_SESSION_ID}}"
CANCEL_PATH = PAYMENT_CANCEL_PAGE


class StripeGateway(IPaymentGateway):
    """Creates checkout sessions and verifies webhook deliveries."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()

    def create_checkout_session(self, customer_email: str, user_id: str) -> CheckoutSession:
        settings = self._settings
        if not settings.stripe_secret_key:
            raise CheckoutUnavailableError("STRIPE_SECRET_KEY is not configured")
        if not settings.stripe_price_id:
            raise CheckoutUnavailableError("STRIPE_PRICE_ID is not configured")

        frontend = settings.frontend_url.rstrip("/")
        try:
            session = stripe.checkout.Session.create(
                api_key=settings.stripe_secret_key,
                mode="subscription",
                line_items=[{"price": settings.stripe_price_id, "quantity": 1}],
                customer_email=customer_email,
                client_reference_id=user_id,
                metadata={"user_id": user_id},
                allow_promotion_codes=True,
                success_url=f"{frontend}{SUCCESS_PATH}",
                cancel_url=f"{frontend}{CANCEL_PATH}",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout creation failed (status {e.http_status}): {e.user_message or e}")
            raise PaymentFailedError(
                "Failed to create checkout session",
                http_status=e.http_status,
                stripe_error=e.user_message or str(e),
            ) from e

        logger.info(f"Created checkout session {session.id} for user {user_id}")
        return CheckoutSession(session_id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> StripeEvent:
        if not signature:
            raise WebhookVerificationError("missing Stripe-Signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self._settings.stripe_webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise WebhookVerificationError(str(e)) from e
        except ValueError as e:
            raise WebhookVerificationError(f"invalid payload: {e}") from e
        return StripeEvent.model_validate_json(payload)
