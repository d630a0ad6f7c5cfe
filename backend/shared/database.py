"""
Supabase client factory.

Two kinds of client are handed out:
- service-role client: backend operations that bypass RLS (webhooks)
- anon client: the session runtime; once signed in, its queries run
  as the user and respect RLS
"""

from typing import Optional
from supabase import create_client, Client

from .config import get_settings

_service_client: Optional[Client] = None
_anon_client: Optional[Client] = None


def _require(url: str, key: str, key_name: str) -> None:
    if not url or not key:
        raise RuntimeError(
            "Supabase configuration missing. "
            f"Set SUPABASE_URL and {key_name} environment variables."
        )


def get_supabase_client() -> Client:
    """
    Get the Supabase client with service role (bypasses RLS).

    Used by the webhook reconciler and other server-side writes that
    act on behalf of a user who is not present in the request.
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        _require(settings.supabase_url, settings.supabase_service_role_key, "SUPABASE_SERVICE_ROLE_KEY")
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def get_supabase_anon_client() -> Client:
    """
    Get the shared anon-key client used by the session runtime.

    Its auth namespace owns the session: sign-in, refresh and the
    auth state change stream all happen through this client.
    """
    global _anon_client

    if _anon_client is None:
        settings = get_settings()
        _require(settings.supabase_url, settings.supabase_anon_key, "SUPABASE_ANON_KEY")
        _anon_client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _anon_client


def reset_client_cache() -> None:
    """
    Reset the cached database clients.

    Useful for testing or when configuration changes.
    """
    global _service_client, _anon_client
    _service_client = None
    _anon_client = None
