"""User-facing messages for authentication failures."""

from shared.exceptions import EvalExpressError

DEFAULT_MESSAGE = "Something went wrong. Please try again."

MESSAGES: dict[str, str] = {
    "INVALID_CREDENTIALS": "Email or password is incorrect.",
    "EMAIL_NOT_CONFIRMED": "Please confirm your email address before signing in. Check your inbox.",
    "RATE_LIMITED": "Too many attempts. Wait a few minutes before trying again.",
    "USER_NOT_FOUND": "No account was found for this email.",
    "SIGN_IN_IN_PROGRESS": "A sign-in is already in progress.",
    "IDENTITY_PROVIDER_ERROR": "The authentication service is unavailable. Please try again.",
    "WEAK_PASSWORD": (
        "The password must have at least 8 characters, including upper and lower "
        "case letters, numbers and special characters."
    ),
    "PASSWORD_MISMATCH": "The passwords do not match.",
    "INVALID_EMAIL": "Please enter a valid email address.",
    "INVALID_LINK": "This link is invalid or was not found.",
    "LINK_EXPIRED": "This link has expired. Request a new one.",
    "MISSING_TOKEN": "You need to be signed in to do that.",
}


def message_for(error: EvalExpressError | str) -> str:
    """Map an error (or an error code) to the message shown to the user."""
    code = error if isinstance(error, str) else error.code
    return MESSAGES.get(code, DEFAULT_MESSAGE)
