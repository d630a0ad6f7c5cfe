"""Tests for the session store."""

import asyncio

import pytest

from modules.auth.exceptions import EmailNotConfirmedError, RateLimitedError
from modules.auth.store import SessionStore
from tests.conftest import make_profile, make_session


class TestState:
    def test_initial_state(self, store):
        assert store.session is None
        assert store.profile is None
        assert store.loading is True
        assert store.is_authenticated is False

    def test_set_session(self, store):
        session, profile = make_session(), make_profile()
        store.set_session(session, profile)

        assert store.is_authenticated
        assert store.session == session
        assert store.profile == profile
        assert store.loading is False

    def test_clear(self, store):
        store.set_session(make_session(), make_profile())
        store.clear()

        assert store.session is None
        assert store.profile is None
        assert store.loading is False

    def test_update_profile_for_signed_in_user(self, store):
        store.set_session(make_session("user-1"), make_profile("user-1"))
        updated = make_profile("user-1", pro_subscription_active=True)

        store.update_profile(updated)

        assert store.profile == updated

    def test_update_profile_ignored_for_other_user(self, store):
        original = make_profile("user-1")
        store.set_session(make_session("user-1"), original)

        store.update_profile(make_profile("user-2"))

        assert store.profile == original

    def test_update_profile_ignored_when_signed_out(self, store):
        store.clear()
        store.update_profile(make_profile())
        assert store.profile is None


class TestSubscriptions:
    def test_listeners_receive_snapshots(self, store):
        states = []
        store.subscribe(states.append)

        store.set_session(make_session(), make_profile())
        store.clear()

        assert [s.is_authenticated for s in states] == [True, False]

    def test_unsubscribe(self, store):
        states = []
        unsubscribe = store.subscribe(states.append)
        unsubscribe()

        store.clear()

        assert states == []

    def test_failing_listener_does_not_block_others(self, store):
        states = []

        def broken(_state):
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        store.subscribe(states.append)
        store.clear()

        assert len(states) == 1

    def test_set_loading_only_notifies_on_change(self, store):
        states = []
        store.subscribe(states.append)

        store.set_loading(True)  # already loading
        store.set_loading(False)

        assert len(states) == 1


class TestSignIn:
    @pytest.mark.asyncio
    async def test_success(self, identity, store):
        identity.add_account("teacher@example.com", "Secret1!")

        result = await store.sign_in("teacher@example.com", "Secret1!")

        assert result.ok
        assert result.error is None
        # The session arrives through the SIGNED_IN event, not from sign_in.
        assert store.session is None

    @pytest.mark.asyncio
    async def test_invalid_credentials(self, identity, store):
        identity.add_account("teacher@example.com", "Secret1!")

        result = await store.sign_in("teacher@example.com", "wrong")

        assert not result.ok
        assert result.error_code == "INVALID_CREDENTIALS"
        assert "incorrect" in result.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,code",
        [(EmailNotConfirmedError(), "EMAIL_NOT_CONFIRMED"), (RateLimitedError(), "RATE_LIMITED")],
    )
    async def test_provider_errors_become_results(self, identity, store, error, code):
        identity.errors["sign_in_with_password"] = error

        result = await store.sign_in("teacher@example.com", "Secret1!")

        assert result.error_code == code
        assert result.error

    @pytest.mark.asyncio
    async def test_unexpected_errors_never_raise(self, identity, store):
        identity.errors["sign_in_with_password"] = ConnectionError("offline")

        result = await store.sign_in("teacher@example.com", "Secret1!")

        assert result.error_code == "IDENTITY_PROVIDER_ERROR"

    @pytest.mark.asyncio
    async def test_second_sign_in_while_pending_is_rejected(self, identity, store):
        identity.add_account("teacher@example.com", "Secret1!")
        identity.sign_in_gate = asyncio.Event()

        first = asyncio.create_task(store.sign_in("teacher@example.com", "Secret1!"))
        await asyncio.sleep(0)
        assert store.is_signing_in

        second = await store.sign_in("teacher@example.com", "Secret1!")
        identity.sign_in_gate.set()
        first_result = await first

        assert second.error_code == "SIGN_IN_IN_PROGRESS"
        assert first_result.ok
        assert len(identity.called("sign_in_with_password")) == 1
        assert not store.is_signing_in


class TestSignOut:
    @pytest.mark.asyncio
    async def test_clears_state(self, identity, store):
        store.set_session(make_session(), make_profile())

        await store.sign_out()

        assert not store.is_authenticated
        assert identity.called("sign_out")

    @pytest.mark.asyncio
    async def test_clears_state_even_when_provider_fails(self, identity, store):
        identity.errors["sign_out"] = RuntimeError("network down")
        store.set_session(make_session(), make_profile())

        await store.sign_out()

        assert store.session is None
        assert store.profile is None
