"""
Billing repository for subscription state and payments.

Reads the subscription columns of ``users`` and applies completed
checkouts through the ``activate_pro_subscription`` database function,
which updates the profile and inserts the payment in one transaction.
"""

import logging
from typing import Optional

import httpx
from supabase import PostgrestAPIError

from shared.repository import BaseRepository

from .exceptions import PersistenceError
from .interfaces import ISubscriptionRepository
from .models import SubscriptionActivation, SubscriptionState

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
ACTIVATE_FUNCTION = "activate_pro_subscription"

SUBSCRIPTION_COLUMNS = "id, current_plan, pro_subscription_active, subscription_expires_at"


class BillingRepository(BaseRepository[SubscriptionState], ISubscriptionRepository):
    """
    Repository for billing data access.

    Note: This repository does NOT perform authorization checks.
    The webhook runs with the service-role client; user-facing
    routes must pass the caller's own user ID.
    """

    def get_subscription_state(self, user_id: str) -> Optional[SubscriptionState]:
        result = (
            self._db.table(USERS_TABLE)
            .select(SUBSCRIPTION_COLUMNS)
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        row = self._first_row(result)
        return SubscriptionState.from_row(row) if row else None

    def find_user_id_by_email(self, email: str) -> Optional[str]:
        result = self._db.table(USERS_TABLE).select("id").eq("email", email).limit(1).execute()
        row = self._first_row(result)
        return row["id"] if row else None

    def activate_subscription(self, activation: SubscriptionActivation) -> None:
        try:
            self._db.rpc(ACTIVATE_FUNCTION, activation.to_rpc_params()).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            reason = getattr(e, "message", None) or str(e) or "database error"
            logger.error(f"Subscription activation failed for user {activation.user_id}: {reason}")
            raise PersistenceError("activate subscription", reason) from e
        logger.info(
            f"Activated pro subscription for user {activation.user_id} "
            f"until {activation.subscription_expires_at.isoformat()}"
        )
