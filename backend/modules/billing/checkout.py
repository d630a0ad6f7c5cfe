"""
Client-side checkout initiation.

Calls the checkout-link endpoint for the signed-in user and returns
an external redirect to the hosted Stripe page.
"""

import logging
from typing import Optional

import httpx

from modules.auth.models import NavigationIntent
from modules.auth.store import SessionStore

from .models import CheckoutOutcome

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


class CheckoutInitiator:
    """
    Starts a Pro plan checkout.

    Only one checkout request is in flight at a time; a second click
    while waiting is rejected without a request.
    """

    def __init__(
        self,
        store: SessionStore,
        endpoint_url: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._store = store
        self._endpoint_url = endpoint_url
        self._client = client
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def start_checkout(self) -> CheckoutOutcome:
        if self._in_flight:
            return CheckoutOutcome(error="A checkout is already in progress.")

        session = self._store.session
        if session is None:
            return CheckoutOutcome(error="You must be signed in to subscribe.")

        profile = self._store.profile
        email = (profile.email if profile else None) or session.email
        if not email:
            return CheckoutOutcome(error="Your account has no email address.")

        self._in_flight = True
        try:
            return await self._request(email, session.access_token)
        finally:
            self._in_flight = False

    async def _request(self, email: str, access_token: str) -> CheckoutOutcome:
        headers = {"Authorization": f"Bearer {access_token}"}
        payload = {"customer_email": email}
        try:
            if self._client is not None:
                response = await self._client.post(
                    self._endpoint_url, json=payload, headers=headers, timeout=REQUEST_TIMEOUT
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        self._endpoint_url, json=payload, headers=headers, timeout=REQUEST_TIMEOUT
                    )
        except httpx.HTTPError as e:
            logger.warning(f"Checkout request failed: {e}")
            return CheckoutOutcome(error="Could not reach the payment service. Please try again.")

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error:
            message = data.get("error") or f"Checkout failed (HTTP {response.status_code})"
            if data.get("details"):
                message = f"{message}: {data['details']}"
            logger.warning(f"Checkout endpoint returned {response.status_code}")
            return CheckoutOutcome(error=message)

        url = data.get("url")
        if not url:
            return CheckoutOutcome(error="The payment service did not return a checkout URL.")

        return CheckoutOutcome(redirect=NavigationIntent(to=url, replace=False, external=True))
