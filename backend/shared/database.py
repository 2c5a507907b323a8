"""
Database client factory for Supabase.

Used when STORAGE_BACKEND=supabase. The credential and token repositories
run with the service-role client because they act on behalf of anonymous
callers (login, password reset) where no user session exists yet.
"""

import logging
from typing import Optional
from supabase import create_client, Client

from .config import get_settings

logger = logging.getLogger(__name__)

USERS_TABLE = "users"

# Module-level client cache
_service_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get Supabase client with service role (bypasses RLS).

    Returns:
        Supabase client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _service_client
    _service_client = None


def check_connection(table: str = USERS_TABLE) -> bool:
    """
    Probe the database with a one-row read.

    Returns False instead of raising so readiness checks can report a
    degraded state.
    """
    try:
        get_supabase_client().table(table).select("id").limit(1).execute()
    except Exception as e:
        logger.warning("Database check against %s failed: %s", table, e)
        return False
    return True
