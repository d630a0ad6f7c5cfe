"""
Billing API endpoints.

Checkout link creation, the Stripe webhook and the caller's
subscription state.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from api.dependencies import (
    get_billing_repository,
    get_checkout_service,
    get_payment_gateway,
    get_webhook_reconciler,
)
from api.middleware.auth import get_current_user
from shared.config import get_settings
from shared.models import AuthenticatedUser

from .exceptions import (
    CheckoutUnavailableError,
    MissingCustomerEmailError,
    PaymentFailedError,
    WebhookVerificationError,
)
from .interfaces import IPaymentGateway, ISubscriptionRepository
from .models import CheckoutErrorResponse, CheckoutRequest, CheckoutResponse, SubscriptionState
from .service import CheckoutService
from .webhook import WebhookReconciler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/checkout-link",
    response_model=CheckoutResponse,
    responses={400: {"model": CheckoutErrorResponse}, 500: {"model": CheckoutErrorResponse}},
)
async def create_checkout_link(
    request: CheckoutRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Create a Stripe checkout session for the Pro plan.

    Returns the hosted checkout URL the frontend redirects to.
    """
    try:
        checkout = await asyncio.to_thread(service.create_checkout_link, user, request.customer_email)
    except MissingCustomerEmailError as e:
        body = CheckoutErrorResponse(error=e.message)
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))
    except (PaymentFailedError, CheckoutUnavailableError) as e:
        body = CheckoutErrorResponse(
            error="Failed to create checkout session",
            details=e.details.get("stripe_error") or e.message,
        )
        return JSONResponse(status_code=500, content=body.model_dump())
    return CheckoutResponse(url=checkout.url)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    gateway: IPaymentGateway = Depends(get_payment_gateway),
    reconciler: WebhookReconciler = Depends(get_webhook_reconciler),
):
    """
    Receive Stripe events.

    The raw body is verified against the Stripe-Signature header before
    anything is parsed. The reconciler's status code is returned as-is
    so Stripe retries on 5xx.
    """
    if not get_settings().stripe_webhook_secret:
        logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
        return JSONResponse(status_code=500, content={"error": "Webhook not configured"})

    payload = await request.body()
    try:
        event = gateway.construct_event(payload, stripe_signature)
    except WebhookVerificationError:
        return JSONResponse(status_code=400, content={"error": "Invalid signature"})

    result = await reconciler.handle(event)
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.get("/subscription", response_model=SubscriptionState)
async def get_subscription(
    user: AuthenticatedUser = Depends(get_current_user),
    repository: ISubscriptionRepository = Depends(get_billing_repository),
) -> SubscriptionState:
    """Get the caller's subscription state."""
    state = await asyncio.to_thread(repository.get_subscription_state, user.id)
    if state is None:
        raise HTTPException(status_code=404, detail="User profile not found")
    return state
