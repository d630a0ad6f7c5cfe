"""
Billing module.

Handles Stripe checkout, webhook reconciliation and post-checkout
subscription polling.

Public API:
- ISubscriptionRepository, IPaymentGateway: Storage and provider contracts
- SubscriptionPoller: Waits for a checkout to activate the subscription
- CheckoutInitiator: Starts a checkout from the signed-in session
- WebhookReconciler: Applies Stripe events to subscription state
- Billing exceptions: PaymentFailedError, WebhookVerificationError, etc.
"""

from .checkout import CheckoutInitiator
from .exceptions import (
    BillingError,
    CheckoutUnavailableError,
    MissingCustomerEmailError,
    PaymentFailedError,
    PersistenceError,
    WebhookVerificationError,
)
from .interfaces import IPaymentGateway, ISubscriptionRepository
from .models import (
    CheckoutOutcome,
    CheckoutSession,
    PaymentRecord,
    PollOutcome,
    PollResult,
    StripeEvent,
    SubscriptionActivation,
    SubscriptionState,
    WebhookResult,
)
from .poller import SubscriptionPoller
from .webhook import WebhookReconciler

__all__ = [
    # Interfaces
    "ISubscriptionRepository",
    "IPaymentGateway",
    # Runtime
    "SubscriptionPoller",
    "CheckoutInitiator",
    "WebhookReconciler",
    # Models
    "SubscriptionState",
    "PaymentRecord",
    "SubscriptionActivation",
    "StripeEvent",
    "WebhookResult",
    "CheckoutSession",
    "CheckoutOutcome",
    "PollOutcome",
    "PollResult",
    # Exceptions
    "BillingError",
    "PaymentFailedError",
    "WebhookVerificationError",
    "PersistenceError",
    "MissingCustomerEmailError",
    "CheckoutUnavailableError",
]
