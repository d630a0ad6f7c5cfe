"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Tests swap implementations through app.dependency_overrides or by
resetting the container.
"""

from typing import TYPE_CHECKING

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.service import AuthService
    from modules.billing.interfaces import IPaymentGateway, ISubscriptionRepository
    from modules.billing.service import CheckoutService
    from modules.billing.webhook import WebhookReconciler


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self) -> None:
        self._auth_service: "AuthService | None" = None
        self._billing_repository: "ISubscriptionRepository | None" = None
        self._payment_gateway: "IPaymentGateway | None" = None
        self._checkout_service: "CheckoutService | None" = None
        self._webhook_reconciler: "WebhookReconciler | None" = None

    @property
    def auth(self) -> "AuthService":
        """Get the auth service instance."""
        if self._auth_service is None:
            from modules.auth.service import get_auth_service
            self._auth_service = get_auth_service()
        return self._auth_service

    @property
    def billing_repository(self) -> "ISubscriptionRepository":
        """Get the billing repository instance (service-role client)."""
        if self._billing_repository is None:
            from modules.billing.repository import BillingRepository
            from shared.database import get_supabase_client
            self._billing_repository = BillingRepository(get_supabase_client())
        return self._billing_repository

    @property
    def payment_gateway(self) -> "IPaymentGateway":
        """Get the Stripe gateway instance."""
        if self._payment_gateway is None:
            from modules.billing.gateway import StripeGateway
            self._payment_gateway = StripeGateway()
        return self._payment_gateway

    @property
    def checkout(self) -> "CheckoutService":
        """Get the checkout service instance."""
        if self._checkout_service is None:
            from modules.billing.service import CheckoutService
            self._checkout_service = CheckoutService(self.payment_gateway)
        return self._checkout_service

    @property
    def webhook(self) -> "WebhookReconciler":
        """Get the webhook reconciler instance."""
        if self._webhook_reconciler is None:
            from modules.billing.webhook import WebhookReconciler
            from shared.config import get_settings
            self._webhook_reconciler = WebhookReconciler(
                self.billing_repository,
                subscription_days=get_settings().subscription_duration_days,
            )
        return self._webhook_reconciler

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._auth_service = None
        self._billing_repository = None
        self._payment_gateway = None
        self._checkout_service = None
        self._webhook_reconciler = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_auth_service() -> "AuthService":
    """FastAPI dependency for auth service."""
    return get_container().auth


def get_billing_repository() -> "ISubscriptionRepository":
    """FastAPI dependency for billing repository."""
    return get_container().billing_repository


def get_payment_gateway() -> "IPaymentGateway":
    """FastAPI dependency for the payment gateway."""
    return get_container().payment_gateway


def get_checkout_service() -> "CheckoutService":
    """FastAPI dependency for checkout service."""
    return get_container().checkout


def get_webhook_reconciler() -> "WebhookReconciler":
    """FastAPI dependency for webhook reconciler."""
    return get_container().webhook
