"""
Email verification and password recovery deep links.

Both links land the user on a page that must establish a session from
URL parameters. Every outcome, including failures, comes back as a
LinkResult the view can render; an invalid or expired link always
produces an error view with a way to request a new one.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel

from shared.exceptions import EvalExpressError

from .exceptions import ExpiredLinkError, InvalidLinkError
from .interfaces import IIdentityProvider, IProfileRepository
from .messages import message_for
from .models import NavigationIntent
from .navigation import LOGIN_PAGE, REQUEST_PASSWORD_RESET_PAGE, VERIFY_EMAIL_PAGE
from .validation import validate_new_password

logger = logging.getLogger(__name__)


def _first(params: dict[str, list[str]], key: str) -> Optional[str]:
    values = params.get(key)
    return values[0] if values else None


class VerificationLink(BaseModel):
    """Fragment parameters of the sign-up confirmation link."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    type: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    error_description: Optional[str] = None

    @classmethod
    def from_url(cls, url: str) -> "VerificationLink":
        params = parse_qs(urlsplit(url).fragment)
        return cls(**{name: _first(params, name) for name in cls.model_fields})

    @property
    def has_tokens(self) -> bool:
        return bool(self.access_token and self.refresh_token)


class RecoveryLink(BaseModel):
    """
    Parameters of a password recovery link.

    Two shapes exist: a one-time ``code`` in the query string (PKCE
    flow) or recovery tokens in the fragment (implicit flow).
    """

    code: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    type: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def from_url(cls, url: str) -> "RecoveryLink":
        parts = urlsplit(url)
        query = parse_qs(parts.query)
        fragment = parse_qs(parts.fragment)
        return cls(
            code=_first(query, "code"),
            access_token=_first(fragment, "access_token"),
            refresh_token=_first(fragment, "refresh_token"),
            type=_first(fragment, "type"),
            error=_first(query, "error") or _first(fragment, "error"),
            error_code=_first(query, "error_code") or _first(fragment, "error_code"),
        )


class LinkStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class LinkResult(BaseModel):
    """What the landing page should show, and where to go next."""

    status: LinkStatus
    message: str
    error_code: Optional[str] = None
    email: Optional[str] = None
    intent: Optional[NavigationIntent] = None

    @property
    def ok(self) -> bool:
        return self.status == LinkStatus.SUCCESS


class LinkService:
    """Consumes verification and recovery links against the identity provider."""

    def __init__(
        self,
        identity: IIdentityProvider,
        profiles: Optional[IProfileRepository] = None,
        login_path: str = LOGIN_PAGE,
        request_reset_path: str = REQUEST_PASSWORD_RESET_PAGE,
        verify_path: str = VERIFY_EMAIL_PAGE,
    ):
        self._identity = identity
        self._profiles = profiles
        self._login_path = login_path
        self._request_reset_path = request_reset_path
        self._verify_path = verify_path

    def _failure(self, error: EvalExpressError, retry_path: str) -> LinkResult:
        return LinkResult(
            status=LinkStatus.ERROR,
            message=message_for(error),
            error_code=error.code,
            intent=NavigationIntent(to=retry_path, replace=False),
        )

    async def consume_verification_link(self, url: str) -> LinkResult:
        link = VerificationLink.from_url(url)

        if link.error == "access_denied" and link.error_code == "otp_expired":
            logger.info("Verification link expired")
            return self._failure(ExpiredLinkError(), self._verify_path)

        if link.error:
            logger.info(f"Verification link carries an error: {link.error}")
            return self._failure(InvalidLinkError(link.error_description or link.error), self._verify_path)

        if link.type != "signup" or not link.has_tokens:
            return self._failure(InvalidLinkError(), self._verify_path)

        try:
            session = await self._identity.set_session(link.access_token, link.refresh_token)
        except EvalExpressError as e:
            logger.warning(f"Verification session rejected: {e.code}")
            return self._failure(InvalidLinkError(e.message), self._verify_path)

        if self._profiles is not None:
            try:
                await asyncio.to_thread(self._profiles.ensure_profile, session.user_id, session.email)
            except Exception:
                # The profile row is recreated lazily; verification still succeeded.
                logger.warning(f"Could not create profile for {session.user_id}", exc_info=True)

        logger.info(f"Email verified for user {session.user_id}")
        return LinkResult(
            status=LinkStatus.SUCCESS,
            message="Email verified. You can now sign in.",
            email=session.email,
            intent=NavigationIntent(to=self._login_path, replace=True),
        )

    async def consume_recovery_link(self, url: str) -> LinkResult:
        """
        Establish the recovery session so the user can choose a new password.

        A query ``code`` is exchanged for a session; fragment tokens with
        ``type=recovery`` are installed directly.
        """
        link = RecoveryLink.from_url(url)

        if link.error_code == "otp_expired":
            return self._failure(ExpiredLinkError(), self._request_reset_path)

        try:
            if link.code:
                session = await self._identity.exchange_code_for_session(link.code)
            elif link.type == "recovery" and link.access_token and link.refresh_token:
                session = await self._identity.set_session(link.access_token, link.refresh_token)
            else:
                return self._failure(InvalidLinkError(), self._request_reset_path)
        except EvalExpressError as e:
            logger.warning(f"Recovery link rejected: {e.code}")
            return self._failure(InvalidLinkError(e.message), self._request_reset_path)

        return LinkResult(
            status=LinkStatus.SUCCESS,
            message="Enter your new password.",
            email=session.email,
        )

    async def reset_password_with_code(
        self,
        email: str,
        code: str,
        new_password: str,
        confirm: Optional[str] = None,
    ) -> LinkResult:
        """
        Verify a recovery code for ``email`` and set the new password.

        This is the OTP variant of recovery, where the code is typed
        rather than followed as a link.
        """
        try:
            validate_new_password(new_password, confirm)
        except EvalExpressError as e:
            return LinkResult(status=LinkStatus.ERROR, message=message_for(e), error_code=e.code)

        try:
            await self._identity.verify_recovery_otp(email, code)
        except EvalExpressError as e:
            logger.info(f"Recovery code rejected: {e.code}")
            return self._failure(InvalidLinkError(e.message), self._request_reset_path)

        try:
            await self._identity.update_password(new_password)
        except EvalExpressError as e:
            return LinkResult(status=LinkStatus.ERROR, message=message_for(e), error_code=e.code)

        return LinkResult(
            status=LinkStatus.SUCCESS,
            message="Password updated.",
            email=email,
            intent=NavigationIntent(to=self._login_path, replace=True),
        )
