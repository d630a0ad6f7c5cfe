"""
Billing module interfaces.

Other modules should depend on these protocols, not the concrete
implementations. The poller and webhook reconciler only see storage
through ISubscriptionRepository; only gateway.py knows about Stripe.
"""

from typing import Optional, Protocol, runtime_checkable

from .models import CheckoutSession, StripeEvent, SubscriptionActivation, SubscriptionState


@runtime_checkable
class ISubscriptionRepository(Protocol):
    """Storage contract for subscription state and payments."""

    def get_subscription_state(self, user_id: str) -> Optional[SubscriptionState]:
        """
        Read the subscription fields of a user's profile.

        Returns:
            SubscriptionState if the user exists, None otherwise
        """
        ...

    def find_user_id_by_email(self, email: str) -> Optional[str]:
        """
        Look up a user's ID by email.

        Returns:
            The user ID, or None if no user has this email
        """
        ...

    def activate_subscription(self, activation: SubscriptionActivation) -> None:
        """
        Apply a completed checkout atomically.

        Raises:
            PersistenceError: If the write fails; nothing is applied
        """
        ...


@runtime_checkable
class IPaymentGateway(Protocol):
    """Contract for the payment provider."""

    def create_checkout_session(self, customer_email: str, user_id: str) -> CheckoutSession:
        """
        Create a hosted checkout session for the Pro plan.

        Raises:
            PaymentFailedError: If the provider rejects the request
            CheckoutUnavailableError: If the provider isn't configured
        """
        ...

    def construct_event(self, payload: bytes, signature: Optional[str]) -> StripeEvent:
        """
        Verify a webhook signature and parse the event.

        Raises:
            WebhookVerificationError: If the signature is missing or invalid
        """
        ...
