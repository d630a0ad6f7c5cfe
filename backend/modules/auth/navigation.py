"""
Navigation intents and the router layer that interprets them.

Reconciliation code (the auth synchronizer, the checkout initiator,
link handling) returns NavigationIntent values. An IntentRouter is the
only thing that turns them into actual navigation.
"""

import logging
from typing import Callable, Optional

from .models import AuthState, NavigationIntent

logger = logging.getLogger(__name__)

LOGIN_PAGE = "/login"
DASHBOARD_PAGE = "/dashboard"
REQUEST_PASSWORD_RESET_PAGE = "/request-password-reset"
UPDATE_PASSWORD_PAGE = "/update-password"
RESET_PASSWORD_PAGE = "/reset-password"
VERIFY_EMAIL_PAGE = "/verify"
PAYMENT_SUCCESS_PAGE = "/payment-success"
PAYMENT_CANCEL_PAGE = "/payment-cancel"

# Pages that are part of a password recovery flow; a sign-out must not
# bounce the user away from them.
AUTH_RECOVERY_PAGES = frozenset({
    REQUEST_PASSWORD_RESET_PAGE,
    UPDATE_PASSWORD_PAGE,
    RESET_PASSWORD_PAGE,
})


def _path_only(location: str) -> str:
    path = location.split("#", 1)[0].split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


def is_login_page(location: str, login_path: str = LOGIN_PAGE) -> bool:
    return _path_only(location) == login_path


def is_auth_recovery_page(location: str) -> bool:
    return _path_only(location) in AUTH_RECOVERY_PAGES


def protected_route_intent(state: AuthState, login_path: str = LOGIN_PAGE) -> Optional[NavigationIntent]:
    """
    Guard for protected views.

    While the store is loading nothing happens (the view shows a spinner);
    once loaded, an unauthenticated state redirects to the login page.
    """
    if state.loading or state.is_authenticated:
        return None
    return NavigationIntent(to=login_path, replace=True)


class IntentRouter:
    """
    Applies navigation intents.

    ``navigate`` handles in-app paths, ``redirect`` handles full page
    loads to external URLs (e.g. the hosted checkout page).
    """

    def __init__(
        self,
        navigate: Callable[[str, bool], None],
        redirect: Optional[Callable[[str], None]] = None,
    ):
        self._navigate = navigate
        self._redirect = redirect

    def apply(self, intent: Optional[NavigationIntent]) -> bool:
        """Perform the intent. Returns False when there was nothing to do."""
        if intent is None:
            return False
        if intent.external:
            if self._redirect is None:
                logger.warning(f"No external redirect handler; dropping redirect to {intent.to}")
                return False
            self._redirect(intent.to)
        else:
            self._navigate(intent.to, intent.replace)
        return True
