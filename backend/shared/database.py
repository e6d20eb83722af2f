"""
Supabase client for the user store.

Only a service-role client is provided: the users table holds password
hashes and one-time tokens, which row level security never exposes.
"""

import logging
from typing import Optional
from supabase import create_client, Client

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

# Module-level client cache
_service_client: Optional[Client] = None


def get_supabase_client(settings: Optional[Settings] = None) -> Client:
    """
    Return the process-wide service-role client, creating it on first use.

    Args:
        settings: Where to read the URL and key from (get_settings() by default)

    Raises:
        RuntimeError: If SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is not set
    """
    global _service_client

    if _service_client is not None:
        return _service_client

    settings = settings or get_settings()
    missing = [
        name
        for name, value in (
            ("SUPABASE_URL", settings.supabase_url),
            ("SUPABASE_SERVICE_ROLE_KEY", settings.supabase_service_role_key),
        )
        if not value
    ]
    if missing:
        raise RuntimeError(
            f"Supabase configuration missing. Set {' and '.join(missing)}."
        )

    logger.info(f"Creating Supabase service client for {settings.supabase_url}")
    _service_client = create_client(
        settings.supabase_url,
        settings.supabase_service_role_key,
    )
    return _service_client


def reset_client_cache() -> None:
    """Forget the cached client so the next call builds a new one."""
    global _service_client
    _service_client = None
