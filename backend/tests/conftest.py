"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
token minting, in-memory fakes for the identity provider and the
repositories, and a TestClient wired to them.
"""

import asyncio
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt  # PyJWT
import pytest
from fastapi.testclient import TestClient

from api.dependencies import reset_container
from modules.auth.exceptions import InvalidCredentialsError
from modules.auth.models import AuthEvent, AuthEventType, PlanType, Session, UserProfile
from modules.auth.service import reset_auth_service
from modules.auth.store import SessionStore
from modules.billing.exceptions import PersistenceError
from modules.billing.models import SubscriptionActivation, SubscriptionState
from shared.config import get_settings


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified
        secret: Signing secret

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def make_session(user_id: str = "user-1", email: Optional[str] = "teacher@example.com") -> Session:
    return Session(
        access_token=f"access-{user_id}",
        refresh_token=f"refresh-{user_id}",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        user_id=user_id,
        email=email,
    )


def make_profile(user_id: str = "user-1", email: str = "teacher@example.com", **fields) -> UserProfile:
    return UserProfile(id=user_id, email=email, **fields)


# ----------------------------------------------------------------------
# Fakes
# ----------------------------------------------------------------------


class FakeIdentityProvider:
    """
    In-memory identity provider.

    Emits auth events to subscribers the way Supabase does: SIGNED_IN
    after a successful password sign-in, SIGNED_OUT after sign-out.
    ``errors`` maps a method name to the exception it should raise.
    """

    def __init__(self, session: Optional[Session] = None):
        self.session = session
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple] = []
        self.listeners: list[Callable[[AuthEvent], None]] = []
        self.accounts: dict[str, tuple[str, Session]] = {}
        self.sign_in_gate: Optional[asyncio.Event] = None

    def add_account(self, email: str, password: str, user_id: str = "user-1") -> Session:
        session = make_session(user_id, email)
        self.accounts[email] = (password, session)
        return session

    def emit(self, event_type: AuthEventType, session: Optional[Session] = None) -> None:
        event = AuthEvent(type=event_type, session=session)
        for listener in list(self.listeners):
            listener(event)

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.errors:
            raise self.errors[name]

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def subscribe(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener) if listener in self.listeners else None

    async def get_session(self):
        self._record("get_session")
        return self.session

    async def sign_in_with_password(self, email, password):
        self._record("sign_in_with_password", email)
        if self.sign_in_gate is not None:
            await self.sign_in_gate.wait()
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise InvalidCredentialsError()
        self.session = account[1]
        self.emit(AuthEventType.SIGNED_IN, self.session)
        return self.session

    async def sign_out(self):
        self._record("sign_out")
        self.session = None
        self.emit(AuthEventType.SIGNED_OUT)

    async def set_session(self, access_token, refresh_token):
        self._record("set_session", access_token, refresh_token)
        self.session = Session(access_token=access_token, refresh_token=refresh_token, user_id="user-1",
                               email="teacher@example.com")
        return self.session

    async def exchange_code_for_session(self, code):
        self._record("exchange_code_for_session", code)
        self.session = make_session()
        return self.session

    async def verify_recovery_otp(self, email, token):
        self._record("verify_recovery_otp", email, token)
        self.session = make_session(email=email)
        return self.session

    async def sign_up(self, email, password, redirect_to):
        self._record("sign_up", email, redirect_to)

    async def reset_password_for_email(self, email, redirect_to):
        self._record("reset_password_for_email", email, redirect_to)

    async def update_password(self, password):
        self._record("update_password")

    async def update_email(self, email):
        self._record("update_email", email)


class FakeProfileRepository:
    """
    In-memory ``users`` table.

    ``gates`` maps a user ID to a threading.Event the fetch waits on,
    so tests can hold a profile fetch in flight.
    """

    def __init__(self, *profiles: UserProfile):
        self.rows: dict[str, UserProfile] = {p.id: p for p in profiles}
        self.fail = False
        self.gates: dict[str, threading.Event] = {}
        self.fetches: list[str] = []
        self.ensured: list[tuple[str, Optional[str]]] = []

    def get_by_id(self, user_id):
        self.fetches.append(user_id)
        gate = self.gates.get(user_id)
        if gate is not None:
            gate.wait(timeout=5)
        if self.fail:
            raise RuntimeError("profile table unavailable")
        return self.rows.get(user_id)

    def get_by_email(self, email):
        return next((p for p in self.rows.values() if p.email == email), None)

    def ensure_profile(self, user_id, email):
        self.ensured.append((user_id, email))
        self.rows.setdefault(user_id, UserProfile(id=user_id, email=email))


class FakeSubscriptionRepository:
    """In-memory subscription storage applying activations like the database function."""

    def __init__(self):
        self.users: dict[str, dict] = {}
        self.payments: list = []
        self.activations: list[SubscriptionActivation] = []
        self.states: list[Optional[SubscriptionState]] = []
        self.read_errors: int = 0
        self.fail_writes = False
        self.reads = 0

    def add_user(self, user_id: str, email: str) -> None:
        self.users[user_id] = {
            "id": user_id,
            "email": email,
            "current_plan": PlanType.FREE,
            "pro_subscription_active": False,
            "subscription_expires_at": None,
        }

    def get_subscription_state(self, user_id):
        self.reads += 1
        if self.read_errors:
            self.read_errors -= 1
            raise RuntimeError("connection reset")
        if self.states:
            return self.states.pop(0)
        row = self.users.get(user_id)
        return SubscriptionState.from_row(row) if row else None

    def find_user_id_by_email(self, email):
        return next((uid for uid, row in self.users.items() if row["email"] == email), None)

    def activate_subscription(self, activation):
        if self.fail_writes:
            raise PersistenceError("activate subscription", "connection lost")
        self.activations.append(activation)
        self.users[activation.user_id].update(
            current_plan=PlanType.PRO,
            pro_subscription_active=True,
            subscription_expires_at=activation.subscription_expires_at,
            stripe_customer_id=activation.stripe_customer_id,
            stripe_subscription_id=activation.stripe_subscription_id,
        )
        self.payments.append(activation.payment)


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached services and settings before and after each test."""
    reset_auth_service()
    reset_container()
    get_settings.cache_clear()
    yield
    reset_auth_service()
    reset_container()
    get_settings.cache_clear()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def profiles() -> FakeProfileRepository:
    return FakeProfileRepository()


@pytest.fixture
def store(identity) -> SessionStore:
    return SessionStore(identity)


@pytest.fixture
def subscriptions() -> FakeSubscriptionRepository:
    return FakeSubscriptionRepository()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def auth_service(profiles):
    """AuthService using the test secret and the in-memory profile table."""
    from unittest.mock import MagicMock

    from modules.auth.service import AuthService
    from shared.config import Settings

    service = AuthService(settings=Settings(supabase_jwt_secret=TEST_JWT_SECRET), db=MagicMock())
    service._profiles = profiles
    return service


@pytest.fixture
def client(auth_service):
    """TestClient with the auth service overridden."""
    from api import app
    from api.dependencies import get_auth_service

    app.dependency_overrides[get_auth_service] = lambda: auth_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
