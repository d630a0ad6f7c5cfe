"""
User-related endpoints.

Provides the signed-in teacher's profile.
"""

import logging

from fastapi import APIRouter, Depends

from modules.auth.models import Session, UserProfile
from modules.auth.service import AuthService
from shared.models import AuthenticatedUser

from ..dependencies import get_auth_service
from ..middleware.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


class UserProfileResponse(UserProfile):
    """User profile response model."""

    email_verified: bool = False
    subscription_active: bool = False


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> UserProfileResponse:
    """
    Get the current user's profile.

    Requires authentication. A user without a profile row (or whose
    row can't be read) gets the default teacher/free profile.
    """
    try:
        profile = await service.get_user_by_id(user.id)
    except Exception:
        logger.warning(f"Profile lookup failed for user {user.id}", exc_info=True)
        profile = None

    if profile is None:
        profile = UserProfile.minimal(
            Session(access_token=user.access_token or "", user_id=user.id, email=user.email)
        )

    return UserProfileResponse(
        **profile.model_dump(),
        email_verified=user.email_verified,
        subscription_active=profile.has_active_subscription(),
    )
