"""
Wiring for the client-side session runtime.

Builds one SessionStore and the components that share it, all backed
by the long-lived anon Supabase client.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from supabase import Client

from shared.config import Settings, get_settings
from shared.database import get_supabase_anon_client

from .account import AccountService
from .identity import SupabaseIdentityProvider
from .links import LinkService
from .navigation import IntentRouter
from .repository import ProfileRepository
from .store import SessionStore
from .synchronizer import AuthSynchronizer


@dataclass
class SessionRuntime:
    store: SessionStore
    synchronizer: AuthSynchronizer
    links: LinkService
    account: AccountService
    profiles: ProfileRepository


def create_session_runtime(
    location: Callable[[], str],
    router: Optional[IntentRouter] = None,
    settings: Optional[Settings] = None,
    client: Optional[Client] = None,
) -> SessionRuntime:
    """
    Create the session runtime for one application instance.

    The caller starts it with ``await runtime.synchronizer.start()``
    (or ``async with runtime.synchronizer``) and stops it on teardown.
    """
    settings = settings or get_settings()
    client = client or get_supabase_anon_client()

    identity = SupabaseIdentityProvider(client)
    profiles = ProfileRepository(client)
    store = SessionStore(identity)

    return SessionRuntime(
        store=store,
        synchronizer=AuthSynchronizer(
            identity,
            profiles,
            store,
            location=location,
            router=router,
            login_path=settings.login_path,
            dashboard_path=settings.dashboard_path,
        ),
        links=LinkService(identity, profiles, login_path=settings.login_path),
        account=AccountService(identity, site_url=settings.frontend_url, api_url=settings.api_url),
        profiles=profiles,
    )
