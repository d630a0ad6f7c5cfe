"""
Supabase Auth adapter for the session runtime.

Wraps the synchronous Supabase auth client behind IIdentityProvider.
Blocking SDK calls run in a worker thread so the event loop stays free,
and SDK errors are translated into auth module exceptions here so no
other code needs to know about them.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from supabase import AuthError, Client

from shared.exceptions import EvalExpressError

from .exceptions import (
    EmailNotConfirmedError,
    IdentityProviderError,
    InvalidCredentialsError,
    RateLimitedError,
    UserNotFoundError,
    WeakPasswordError,
)
from .interfaces import AuthEventListener, IIdentityProvider
from .models import AuthEvent, AuthEventType, Session

logger = logging.getLogger(__name__)


def translate_auth_error(error: Exception, email: Optional[str] = None) -> EvalExpressError:
    """Map a Supabase auth error onto the auth module's exception taxonomy."""
    message = str(getattr(error, "message", None) or error)
    lowered = message.lower()
    code = (getattr(error, "code", None) or "").lower()
    status = getattr(error, "status", None)

    if "invalid login credentials" in lowered or code == "invalid_credentials":
        return InvalidCredentialsError()
    if "email not confirmed" in lowered or code == "email_not_confirmed":
        return EmailNotConfirmedError()
    if status == 429 or "rate limit" in lowered or "too many requests" in lowered:
        return RateLimitedError(message)
    if "user not found" in lowered or code == "user_not_found":
        return UserNotFoundError(email or "unknown")
    if code == "weak_password" or "password should be" in lowered:
        return WeakPasswordError(message)
    return IdentityProviderError(message, status=status)


def _event_type(name: Any) -> Optional[AuthEventType]:
    try:
        return AuthEventType(str(getattr(name, "value", name)))
    except ValueError:
        return None


class SupabaseIdentityProvider(IIdentityProvider):
    """
    Identity provider backed by a Supabase client's auth namespace.

    The client should be the long-lived anon client from
    shared.database.get_supabase_anon_client(), since it owns the
    persisted session and the auth state stream.
    """

    def __init__(self, client: Client):
        self._client = client

    async def _call(self, fn: Callable[..., Any], *args: Any, email: Optional[str] = None) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except AuthError as e:
            raise translate_auth_error(e, email=email) from e

    @staticmethod
    def _session_from(response: Any) -> Session:
        session = getattr(response, "session", None)
        if session is None:
            raise IdentityProviderError("Identity provider returned no session")
        return Session.from_provider(session)

    async def get_session(self) -> Optional[Session]:
        session = await self._call(self._client.auth.get_session)
        if session is None:
            return None
        return Session.from_provider(session)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        response = await self._call(
            self._client.auth.sign_in_with_password,
            {"email": email, "password": password},
            email=email,
        )
        return self._session_from(response)

    async def sign_out(self) -> None:
        await self._call(self._client.auth.sign_out)

    def subscribe(self, listener: AuthEventListener) -> Callable[[], None]:
        def on_change(event: Any, session: Any) -> None:
            event_type = _event_type(event)
            if event_type is None:
                logger.debug(f"Ignoring unsupported auth event: {event}")
                return
            listener(
                AuthEvent(
                    type=event_type,
                    session=Session.from_provider(session) if session else None,
                )
            )

        subscription = self._client.auth.on_auth_state_change(on_change)
        return subscription.unsubscribe

    async def set_session(self, access_token: str, refresh_token: str) -> Session:
        response = await self._call(self._client.auth.set_session, access_token, refresh_token)
        return self._session_from(response)

    async def exchange_code_for_session(self, code: str) -> Session:
        response = await self._call(
            self._client.auth.exchange_code_for_session,
            {"auth_code": code},
        )
        return self._session_from(response)

    async def verify_recovery_otp(self, email: str, token: str) -> Session:
        response = await self._call(
            self._client.auth.verify_otp,
            {"email": email, "token": token, "type": "recovery"},
            email=email,
        )
        return self._session_from(response)

    async def sign_up(self, email: str, password: str, redirect_to: str) -> None:
        await self._call(
            self._client.auth.sign_up,
            {
                "email": email,
                "password": password,
                "options": {"email_redirect_to": redirect_to},
            },
            email=email,
        )

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        await self._call(
            self._client.auth.reset_password_for_email,
            email,
            {"redirect_to": redirect_to},
            email=email,
        )

    async def update_password(self, password: str) -> None:
        await self._call(self._client.auth.update_user, {"password": password})

    async def update_email(self, email: str) -> None:
        await self._call(self._client.auth.update_user, {"email": email}, email=email)
