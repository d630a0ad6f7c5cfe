"""Input validation for account forms."""

import re

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from shared.exceptions import ValidationError

from .exceptions import WeakPasswordError

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = "!@#$%^&*()_+"

_email_adapter = TypeAdapter(EmailStr)


def validate_email(email: str) -> str:
    """Return the normalized email, or raise ValidationError(INVALID_EMAIL)."""
    candidate = (email or "").strip()
    if not candidate:
        raise ValidationError("Email is required", code="INVALID_EMAIL")
    try:
        return _email_adapter.validate_python(candidate)
    except PydanticValidationError:
        raise ValidationError(f"Invalid email: {candidate}", code="INVALID_EMAIL")


def is_strong_password(password: str) -> bool:
    return (
        len(password) >= MIN_PASSWORD_LENGTH
        and re.search(r"[A-Z]", password) is not None
        and re.search(r"[a-z]", password) is not None
        and re.search(r"\d", password) is not None
        and any(ch in SPECIAL_CHARACTERS for ch in password)
    )


def validate_new_password(password: str, confirm: str | None = None) -> None:
    """
    Check a new password (and its confirmation, when given).

    Raises:
        ValidationError: code PASSWORD_MISMATCH when the two differ
        WeakPasswordError: when the password fails the strength rules
    """
    if confirm is not None and password != confirm:
        raise ValidationError("Passwords do not match", code="PASSWORD_MISMATCH")
    if not is_strong_password(password):
        raise WeakPasswordError()
