"""
Profile repository for the public ``users`` table.

Encapsulates all Supabase queries for user profiles and maps rows to
UserProfile at the boundary. The same repository serves the backend
(service-role client) and the session runtime (user client under RLS).
"""

import logging
from typing import Optional

from shared.repository import BaseRepository

from .interfaces import IProfileRepository
from .models import PlanType, UserProfile, UserRole

logger = logging.getLogger(__name__)

USERS_TABLE = "users"


class ProfileRepository(BaseRepository[UserProfile], IProfileRepository):
    """
    Repository for user profile data access.

    Note: This repository does NOT perform authorization checks.
    Callers using the service-role client must scope queries themselves.
    """

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        result = self._db.table(USERS_TABLE).select("*").eq("id", user_id).limit(1).execute()
        row = self._first_row(result)
        return UserProfile.from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        result = self._db.table(USERS_TABLE).select("*").eq("email", email).limit(1).execute()
        row = self._first_row(result)
        return UserProfile.from_row(row) if row else None

    def ensure_profile(self, user_id: str, email: Optional[str]) -> None:
        """
        Create the default profile row for a newly verified user.

        Existing rows are left untouched.
        """
        data = {
            "id": user_id,
            "email": email,
            "role": UserRole.TEACHER.value,
            "current_plan": PlanType.FREE.value,
            "pro_subscription_active": False,
        }
        self._db.table(USERS_TABLE).upsert(data, on_conflict="id", ignore_duplicates=True).execute()
        logger.debug(f"Ensured profile row for user {user_id}")
