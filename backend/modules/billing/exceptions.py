"""
Billing module exceptions.

These exceptions are raised by the billing module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from typing import Optional

from shared.exceptions import EvalExpressError, ExternalServiceError, ValidationError


class BillingError(EvalExpressError):
    """Base exception for billing-related errors."""

    pass


class PaymentFailedError(ExternalServiceError):
    """
    Raised when Stripe rejects a request.

    Carries the Stripe status and message for support, never the key.
    """

    def __init__(self, message: str, http_status: Optional[int] = None, stripe_error: Optional[str] = None):
        details = {}
        if http_status is not None:
            details["http_status"] = http_status
        if stripe_error:
            details["stripe_error"] = stripe_error
        super().__init__(message, service="stripe", code="PAYMENT_FAILED", details=details)
        self.http_status = http_status
        self.stripe_error = stripe_error


class CheckoutUnavailableError(BillingError):
    """Raised when checkout can't be offered (e.g., Stripe not configured)."""

    def __init__(self, reason: str):
        super().__init__(
            f"Checkout unavailable: {reason}",
            code="CHECKOUT_UNAVAILABLE",
            details={"reason": reason},
        )


class MissingCustomerEmailError(ValidationError):
    """Raised when neither the request nor the session provides an email."""

    def __init__(self):
        super().__init__("customer_email is required", code="MISSING_CUSTOMER_EMAIL")


class WebhookVerificationError(BillingError):
    """Raised when Stripe webhook signature verification fails."""

    status_code = 400

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            "Webhook signature verification failed",
            code="WEBHOOK_VERIFICATION_FAILED",
            details={"reason": reason} if reason else {},
        )


class PersistenceError(BillingError):
    """Raised when a billing write to the database fails."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Failed to {operation}: {reason}",
            code="PERSISTENCE_FAILED",
            details={"operation": operation},
        )
