"""
Account operations behind the registration, password and settings forms.

All operations return an AccountResult carrying a user-facing message;
none of them raise into the caller.
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from shared.exceptions import EvalExpressError

from .interfaces import IIdentityProvider
from .messages import message_for
from .navigation import UPDATE_PASSWORD_PAGE, VERIFY_EMAIL_PAGE
from .validation import validate_email, validate_new_password

logger = logging.getLogger(__name__)


class AccountResult(BaseModel):
    ok: bool
    message: str
    error_code: Optional[str] = None


def _failed(error: EvalExpressError) -> AccountResult:
    return AccountResult(ok=False, message=message_for(error), error_code=error.code)


class AccountService:
    """
    Client-side account management.

    Args:
        identity: Identity provider used for sign-up and credential changes
        site_url: Public frontend URL; email links point back here
        api_url: Backend base URL, for the resend-verification endpoint
        client: Optional shared httpx client (tests inject a mock transport)
    """

    def __init__(
        self,
        identity: IIdentityProvider,
        site_url: str,
        api_url: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._identity = identity
        self._site_url = site_url.rstrip("/")
        self._api_url = api_url.rstrip("/")
        self._client = client

    async def sign_up(self, email: str, password: str, confirm: Optional[str] = None) -> AccountResult:
        try:
            email = validate_email(email)
            validate_new_password(password, confirm)
            await self._identity.sign_up(email, password, redirect_to=f"{self._site_url}{VERIFY_EMAIL_PAGE}")
        except EvalExpressError as e:
            logger.info(f"Sign-up rejected: {e.code}")
            return _failed(e)
        return AccountResult(ok=True, message="Account created. Check your email to confirm it.")

    async def request_password_reset(self, email: str) -> AccountResult:
        try:
            email = validate_email(email)
            await self._identity.reset_password_for_email(
                email,
                redirect_to=f"{self._site_url}{UPDATE_PASSWORD_PAGE}",
            )
        except EvalExpressError as e:
            logger.info(f"Password reset request failed: {e.code}")
            return _failed(e)
        return AccountResult(ok=True, message="Recovery email sent. Check your inbox.")

    async def update_password(self, password: str, confirm: str) -> AccountResult:
        try:
            validate_new_password(password, confirm)
            await self._identity.update_password(password)
        except EvalExpressError as e:
            return _failed(e)
        return AccountResult(ok=True, message="Password updated.")

    async def update_email(self, email: str) -> AccountResult:
        try:
            email = validate_email(email)
            await self._identity.update_email(email)
        except EvalExpressError as e:
            return _failed(e)
        return AccountResult(ok=True, message="Check both inboxes to confirm the new email address.")

    async def resend_verification(self, email: str) -> AccountResult:
        try:
            email = validate_email(email)
        except EvalExpressError as e:
            return _failed(e)

        url = f"{self._api_url}/api/auth/resend-verification"
        try:
            if self._client is not None:
                response = await self._client.post(url, json={"email": email}, timeout=30.0)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(url, json={"email": email}, timeout=30.0)
        except httpx.HTTPError as e:
            logger.warning(f"Resend verification request failed: {e}")
            return AccountResult(ok=False, message=message_for("IDENTITY_PROVIDER_ERROR"), error_code="NETWORK_ERROR")

        if response.status_code == 429:
            return AccountResult(ok=False, message=message_for("RATE_LIMITED"), error_code="RATE_LIMITED")
        if response.is_error:
            return AccountResult(
                ok=False,
                message=message_for("IDENTITY_PROVIDER_ERROR"),
                error_code=f"HTTP_{response.status_code}",
            )
        return AccountResult(ok=True, message="Verification email sent.")
