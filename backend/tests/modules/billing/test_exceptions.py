"""Tests for billing module exceptions."""

from modules.billing.exceptions import (
    BillingError,
    CheckoutUnavailableError,
    MissingCustomerEmailError,
    PaymentFailedError,
    PersistenceError,
    WebhookVerificationError,
)
from shared.exceptions import EvalExpressError, ExternalServiceError, ValidationError


class TestBillingError:
    def test_billing_error_to_dict(self):
        """Should convert to dict for API responses."""
        error = BillingError("Test error", code="TEST", details={"key": "value"})
        result = error.to_dict()
        assert result["error"] == "TEST"
        assert result["message"] == "Test error"
        assert result["details"]["key"] == "value"


class TestPaymentFailedError:
    def test_details(self):
        error = PaymentFailedError("Failed", http_status=402, stripe_error="Your card was declined.")
        assert isinstance(error, ExternalServiceError)
        assert error.code == "PAYMENT_FAILED"
        assert error.details == {
            "http_status": 402,
            "stripe_error": "Your card was declined.",
            "service": "stripe",
        }

    def test_minimal(self):
        error = PaymentFailedError("Failed")
        assert error.details == {"service": "stripe"}
        assert error.http_status is None


class TestOtherErrors:
    def test_checkout_unavailable(self):
        error = CheckoutUnavailableError("STRIPE_PRICE_ID is not configured")
        assert error.code == "CHECKOUT_UNAVAILABLE"
        assert "STRIPE_PRICE_ID" in error.message

    def test_missing_email_is_validation_error(self):
        error = MissingCustomerEmailError()
        assert isinstance(error, ValidationError)
        assert error.message == "customer_email is required"

    def test_webhook_verification(self):
        assert WebhookVerificationError().details == {}
        assert WebhookVerificationError("bad sig").details == {"reason": "bad sig"}

    def test_persistence(self):
        error = PersistenceError("activate subscription", "timeout")
        assert isinstance(error, EvalExpressError)
        assert error.message == "Failed to activate subscription: timeout"
        assert error.code == "PERSISTENCE_FAILED"
