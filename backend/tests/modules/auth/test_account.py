"""Tests for account operations."""

import httpx
import pytest

from modules.auth.account import AccountService
from modules.auth.exceptions import EmailNotConfirmedError, RateLimitedError

SITE = "https://app.example.com"
API = "https://api.example.com"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def account(identity):
    return AccountService(identity, site_url=SITE + "/", api_url=API)


class TestSignUp:
    @pytest.mark.asyncio
    async def test_success_uses_verify_redirect(self, identity, account):
        result = await account.sign_up("teacher@example.com", "Secret1!", "Secret1!")

        assert result.ok
        assert identity.called("sign_up") == [("sign_up", "teacher@example.com", f"{SITE}/verify")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,password,confirm,code",
        [
            ("not-an-email", "Secret1!", None, "INVALID_EMAIL"),
            ("teacher@example.com", "Secret1!", "Secret2!", "PASSWORD_MISMATCH"),
            ("teacher@example.com", "short", None, "WEAK_PASSWORD"),
        ],
    )
    async def test_rejected_before_provider(self, identity, account, email, password, confirm, code):
        result = await account.sign_up(email, password, confirm)

        assert not result.ok
        assert result.error_code == code
        assert identity.calls == []


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_redirects_to_update_password(self, identity, account):
        result = await account.request_password_reset("teacher@example.com")

        assert result.ok
        assert identity.called("reset_password_for_email") == [
            ("reset_password_for_email", "teacher@example.com", f"{SITE}/update-password")
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,code",
        [(RateLimitedError(), "RATE_LIMITED"), (EmailNotConfirmedError(), "EMAIL_NOT_CONFIRMED")],
    )
    async def test_provider_errors_map_to_messages(self, identity, account, error, code):
        identity.errors["reset_password_for_email"] = error

        result = await account.request_password_reset("teacher@example.com")

        assert result.error_code == code
        assert result.message

    @pytest.mark.asyncio
    async def test_invalid_email(self, identity, account):
        result = await account.request_password_reset("nope")
        assert result.error_code == "INVALID_EMAIL"
        assert identity.calls == []


class TestCredentialChanges:
    @pytest.mark.asyncio
    async def test_update_password(self, identity, account):
        assert (await account.update_password("NewPass1!", "NewPass1!")).ok
        assert identity.called("update_password")

    @pytest.mark.asyncio
    async def test_update_password_mismatch(self, identity, account):
        result = await account.update_password("NewPass1!", "NewPass2!")
        assert result.error_code == "PASSWORD_MISMATCH"
        assert identity.calls == []

    @pytest.mark.asyncio
    async def test_update_email(self, identity, account):
        result = await account.update_email("new@example.com")
        assert result.ok
        assert identity.called("update_email") == [("update_email", "new@example.com")]


class TestResendVerification:
    @pytest.mark.asyncio
    async def test_posts_to_backend(self, identity):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True})

        async with _client(handler) as client:
            account = AccountService(identity, SITE, API, client=client)
            result = await account.resend_verification("teacher@example.com")

        assert result.ok
        assert str(seen[0].url) == f"{API}/api/auth/resend-verification"

    @pytest.mark.asyncio
    async def test_rate_limited(self, identity):
        async with _client(lambda request: httpx.Response(429, json={"error": "Rate limit"})) as client:
            result = await AccountService(identity, SITE, API, client=client).resend_verification("t@example.com")

        assert result.error_code == "RATE_LIMITED"

    @pytest.mark.asyncio
    async def test_server_error(self, identity):
        async with _client(lambda request: httpx.Response(500)) as client:
            result = await AccountService(identity, SITE, API, client=client).resend_verification("t@example.com")

        assert result.error_code == "HTTP_500"

    @pytest.mark.asyncio
    async def test_network_error(self, identity):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        async with _client(handler) as client:
            result = await AccountService(identity, SITE, API, client=client).resend_verification("t@example.com")

        assert result.error_code == "NETWORK_ERROR"
        assert not result.ok
