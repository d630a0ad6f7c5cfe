"""Tests for billing module models."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from modules.auth.models import PlanType
from modules.billing.models import (
    CHECKOUT_COMPLETED,
    CheckoutOutcome,
    CheckoutSessionObject,
    PaymentRecord,
    StripeEvent,
    SubscriptionActivation,
    SubscriptionState,
)
from modules.auth.models import NavigationIntent

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestSubscriptionState:
    def test_from_row(self):
        state = SubscriptionState.from_row({
            "id": "user-1",
            "current_plan": "pro",
            "pro_subscription_active": True,
            "subscription_expires_at": "2026-04-01T00:00:00+00:00",
        })
        assert state.user_id == "user-1"
        assert state.current_plan == PlanType.PRO
        assert state.subscription_expires_at == datetime(2026, 4, 1, tzinfo=timezone.utc)

    def test_from_row_defaults(self):
        state = SubscriptionState.from_row({"id": "user-1", "current_plan": None})
        assert state.current_plan == PlanType.FREE
        assert state.pro_subscription_active is False

    @pytest.mark.parametrize(
        "active,expires_at,expected",
        [
            (False, NOW + timedelta(days=1), False),
            (True, NOW + timedelta(days=1), True),
            (True, NOW, False),
            (True, NOW - timedelta(seconds=1), False),
            (True, None, False),
        ],
    )
    def test_is_active(self, active, expires_at, expected):
        state = SubscriptionState(
            user_id="user-1",
            pro_subscription_active=active,
            subscription_expires_at=expires_at,
        )
        assert state.is_active(NOW) is expected


class TestPaymentRecord:
    def test_to_row(self):
        record = PaymentRecord(
            user_id="user-1",
            email="teacher@example.com",
            amount=Decimal("9.99"),
            currency="usd",
            paid_at=NOW,
        )
        row = record.to_row()
        assert row["amount"] == "9.99"
        assert row["status"] == "succeeded"
        assert row["paid_at"] == NOW.isoformat()


class TestSubscriptionActivation:
    def test_rpc_params(self):
        activation = SubscriptionActivation(
            user_id="user-1",
            stripe_customer_id="cus_1",
            stripe_subscription_id="sub_1",
            subscription_expires_at=NOW + timedelta(days=30),
            payment=PaymentRecord(user_id="user-1", amount=Decimal("5"), paid_at=NOW),
        )
        params = activation.to_rpc_params()
        assert params["p_user_id"] == "user-1"
        assert params["p_stripe_customer_id"] == "cus_1"
        assert params["p_stripe_subscription_id"] == "sub_1"
        assert params["p_subscription_expires_at"] == "2026-03-31T12:00:00+00:00"
        assert params["p_payment"]["user_id"] == "user-1"


class TestCheckoutSessionObject:
    def test_email_prefers_customer_details(self):
        session = CheckoutSessionObject.model_validate({
            "customer_email": "typed@example.com",
            "customer_details": {"email": "billing@example.com", "name": "T"},
        })
        assert session.email == "billing@example.com"

    def test_email_falls_back_to_customer_email(self):
        session = CheckoutSessionObject.model_validate({
            "customer_email": "typed@example.com",
            "customer_details": {"email": None},
        })
        assert session.email == "typed@example.com"

    def test_no_email(self):
        assert CheckoutSessionObject().email is None


class TestStripeEvent:
    def test_parse_envelope(self):
        event = StripeEvent.model_validate_json(
            '{"id": "evt_1", "object": "event", "type": "checkout.session.completed",'
            ' "data": {"object": {"id": "cs_1", "amount_total": 999, "livemode": false}}}'
        )
        assert event.type == CHECKOUT_COMPLETED
        session = event.checkout_session()
        assert session.id == "cs_1"
        assert session.amount_total == 999

    def test_missing_data(self):
        event = StripeEvent(type="customer.created")
        assert event.data.object == {}


class TestCheckoutOutcome:
    def test_ok(self):
        assert CheckoutOutcome(redirect=NavigationIntent(to="https://x", external=True)).ok
        assert not CheckoutOutcome(error="nope").ok
