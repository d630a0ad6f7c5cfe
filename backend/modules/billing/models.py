"""
Billing module data models.

These models define the data structures used by the billing module
and exposed to other modules through the interface. Stripe payloads
and ``users``/``payments`` rows are validated here, at the boundary.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from modules.auth.models import NavigationIntent, PlanType

CHECKOUT_COMPLETED = "checkout.session.completed"


class PaymentStatus(str, Enum):
    """Status recorded on a payment row."""

    SUCCEEDED = "succeeded"


class SubscriptionState(BaseModel):
    """The subscription fields of a user's profile."""

    user_id: str = Field(..., description="User ID")
    current_plan: PlanType = Field(default=PlanType.FREE)
    pro_subscription_active: bool = Field(default=False)
    subscription_expires_at: Optional[datetime] = Field(None)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SubscriptionState":
        return cls(
            user_id=row["id"],
            current_plan=row.get("current_plan") or PlanType.FREE,
            pro_subscription_active=bool(row.get("pro_subscription_active")),
            subscription_expires_at=row.get("subscription_expires_at"),
        )

    def is_active(self, now: Optional[datetime] = None) -> bool:
        if not self.pro_subscription_active:
            return False
        if self.subscription_expires_at is None:
            return False
        return self.subscription_expires_at > (now or datetime.now(timezone.utc))


class PaymentRecord(BaseModel):
    """
    One completed checkout.

    Rows are append-only; they are created by the webhook and never updated.
    """

    user_id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="Email the payment was made with")
    stripe_customer_id: Optional[str] = Field(None, description="Stripe customer ID")
    stripe_subscription_id: Optional[str] = Field(None, description="Stripe subscription ID")
    amount: Decimal = Field(..., description="Amount in major currency units")
    currency: Optional[str] = Field(None, description="ISO currency code")
    status: PaymentStatus = Field(default=PaymentStatus.SUCCEEDED)
    paid_at: datetime = Field(..., description="When the checkout completed")

    def to_row(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "stripe_customer_id": self.stripe_customer_id,
            "stripe_subscription_id": self.stripe_subscription_id,
            "amount": str(self.amount),
            "currency": self.currency,
            "status": self.status.value,
            "paid_at": self.paid_at.isoformat(),
        }


class SubscriptionActivation(BaseModel):
    """
    Everything a completed checkout writes, applied as one transaction.

    Sets the plan, the active flag and its expiry together, and appends
    the payment record.
    """

    user_id: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    subscription_expires_at: datetime
    payment: PaymentRecord

    def to_rpc_params(self) -> dict[str, Any]:
        return {
            "p_user_id": self.user_id,
            "p_stripe_customer_id": self.stripe_customer_id,
            "p_stripe_subscription_id": self.stripe_subscription_id,
            "p_subscription_expires_at": self.subscription_expires_at.isoformat(),
            "p_payment": self.payment.to_row(),
        }


# ----------------------------------------------------------------------
# Stripe webhook payloads
# ----------------------------------------------------------------------


class CustomerDetails(BaseModel):
    email: Optional[str] = None

    model_config = {"extra": "ignore"}


class CheckoutSessionObject(BaseModel):
    """The ``data.object`` of a checkout.session.completed event."""

    id: Optional[str] = None
    customer: Optional[str] = None
    subscription: Optional[str] = None
    customer_email: Optional[str] = None
    customer_details: Optional[CustomerDetails] = None
    amount_total: Optional[int] = Field(None, description="Amount in minor units")
    currency: Optional[str] = None
    created: Optional[int] = Field(None, description="Unix timestamp")

    model_config = {"extra": "ignore"}

    @property
    def email(self) -> Optional[str]:
        if self.customer_details and self.customer_details.email:
            return self.customer_details.email
        return self.customer_email


class StripeEventData(BaseModel):
    object: dict[str, Any] = Field(default_factory=dict)


class StripeEvent(BaseModel):
    """Stripe event envelope: ``{type, data: {object}}``."""

    id: Optional[str] = None
    type: str
    data: StripeEventData = Field(default_factory=StripeEventData)

    model_config = {"extra": "ignore"}

    def checkout_session(self) -> CheckoutSessionObject:
        return CheckoutSessionObject.model_validate(self.data.object)


class WebhookResult(BaseModel):
    """HTTP status and JSON body the webhook endpoint answers with."""

    status_code: int
    body: dict[str, Any]


# ----------------------------------------------------------------------
# Checkout
# ----------------------------------------------------------------------


class CheckoutRequest(BaseModel):
    """Request to create a checkout link."""

    customer_email: Optional[str] = Field(None, description="Email for the Stripe customer")


class CheckoutSession(BaseModel):
    """
    Stripe checkout session info.

    Returned when initiating a subscription purchase.
    """

    session_id: str = Field(..., description="Stripe checkout session ID")
    url: str = Field(..., description="Checkout URL to redirect user to")


class CheckoutResponse(BaseModel):
    """API response for checkout link creation."""

    url: str = Field(..., description="Hosted checkout URL")


class CheckoutErrorResponse(BaseModel):
    """API error body for checkout link creation."""

    error: str
    details: Optional[str] = None


class CheckoutOutcome(BaseModel):
    """Result of a client-side checkout attempt."""

    redirect: Optional[NavigationIntent] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.redirect is not None


# ----------------------------------------------------------------------
# Subscription polling
# ----------------------------------------------------------------------


class PollOutcome(str, Enum):
    """Terminal states of the subscription poller."""

    ACTIVE = "active"
    PENDING = "pending"  # payment likely still processing upstream


class PollResult(BaseModel):
    outcome: PollOutcome
    attempts: int
    state: Optional[SubscriptionState] = None
