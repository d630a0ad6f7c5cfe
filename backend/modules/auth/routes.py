"""
Auth API endpoints.

Server-side helpers for flows the frontend cannot complete with the
anon key alone.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies import get_auth_service
from shared.exceptions import EvalExpressError

from .exceptions import RateLimitedError
from .service import AuthService
from .validation import validate_email

logger = logging.getLogger(__name__)

router = APIRouter()


class ResendVerificationRequest(BaseModel):
    email: str = ""


class ResendVerificationResponse(BaseModel):
    success: bool = True
    message: str = "Verification email resent successfully"


@router.post("/resend-verification", response_model=ResendVerificationResponse)
async def resend_verification(
    request: ResendVerificationRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Resend the sign-up confirmation email.

    Returns 400 for a missing or malformed email and 429 when the
    identity provider rate-limits the request.
    """
    try:
        email = validate_email(request.email)
    except EvalExpressError:
        return JSONResponse(status_code=400, content={"error": "Email is required"})

    try:
        await service.resend_verification(email)
    except RateLimitedError:
        return JSONResponse(
            status_code=429,
            content={"error": "Rate limit exceeded. Please try again later.", "code": "RATE_LIMITED"},
        )
    except EvalExpressError as e:
        logger.warning(f"Resend verification failed: {e.code}")
        return JSONResponse(status_code=400, content={"error": e.message})

    return ResendVerificationResponse()
