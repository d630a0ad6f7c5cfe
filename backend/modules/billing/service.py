"""
Checkout service implementation.

Backs the checkout-link endpoint: resolves the customer email and asks
the payment gateway for a hosted checkout session.
"""

import logging
from typing import Optional

from shared.models import AuthenticatedUser

from .exceptions import MissingCustomerEmailError
from .interfaces import IPaymentGateway
from .models import CheckoutSession

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Creates Pro plan checkout sessions for authenticated users.

    The email in the request wins; the token's email is the fallback.
    """

    def __init__(self, gateway: IPaymentGateway):
        self._gateway = gateway

    def create_checkout_link(
        self,
        user: AuthenticatedUser,
        customer_email: Optional[str] = None,
    ) -> CheckoutSession:
        email = (customer_email or "").strip() or user.email
        if not email:
            raise MissingCustomerEmailError()

        logger.debug(f"Creating checkout link for user {user.id}")
        return self._gateway.create_checkout_session(customer_email=email, user_id=user.id)
