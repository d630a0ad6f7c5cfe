"""
Tests for shared models.
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from shared.models import AuthenticatedUser


class TestAuthenticatedUser:
    """Tests for the AuthenticatedUser model in shared."""

    def test_create_with_required_fields(self):
        """Should create user with only required fields."""
        user = AuthenticatedUser(id="user-123")
        assert user.id == "user-123"
        assert user.email is None

    def test_default_values(self):
        """Should have correct default values."""
        user = AuthenticatedUser(id="user-123", email="test@example.com")
        assert user.email_verified is False
        assert user.role == "teacher"
        assert user.access_token is None
        assert user.last_sign_in is None

    def test_all_fields(self):
        now = datetime.now(timezone.utc)
        user = AuthenticatedUser(
            id="user-123",
            email="test@example.com",
            email_verified=True,
            access_token="token",
            last_sign_in=now,
        )
        assert user.email_verified is True
        assert user.access_token == "token"
        assert user.last_sign_in == now

    def test_access_token_not_in_repr(self):
        user = AuthenticatedUser(id="user-123", access_token="secret-token")
        assert "secret-token" not in repr(user)

    def test_email_validation(self):
        """Should validate email format."""
        with pytest.raises(ValidationError):
            AuthenticatedUser(id="user-123", email="not-an-email")

    def test_immutability(self):
        """Should be frozen/immutable."""
        user = AuthenticatedUser(id="user-123", email="test@example.com")
        with pytest.raises(ValidationError):
            user.id = "new-id"

    def test_extra_fields_ignored(self):
        """Should ignore extra fields from JWT claims."""
        user = AuthenticatedUser(id="user-123", aud="authenticated")  # type: ignore
        assert not hasattr(user, "aud")
