"""Supabase client factories for auth, table and storage access."""
import logging
from typing import Optional
import httpx
from supabase import AsyncClient, PostgrestAPIError, StorageException, acreate_client
from nexuscrm.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# Failures of table/storage calls that services translate into RepositoryError
BACKEND_ERRORS = (PostgrestAPIError, StorageException, httpx.HTTPError)


async def create_supabase_client(settings: Settings = None) -> AsyncClient:
    """
    Create the user-facing client (anon key).

    Row access through this client is scoped by the signed-in user's JWT,
    so row-level-security policies decide what each user can read or write.
    """
    settings = settings or default_settings
    client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
    logger.info(f"Supabase client created for {settings.SUPABASE_URL}")
    return client


async def create_admin_client(settings: Settings = None) -> Optional[AsyncClient]:
    """
    Create a service-role client for admin-only auth calls (invitations).

    Returns None when no service-role key is configured.
    """
    settings = settings or default_settings
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set, user invitations are disabled")
        return None
    return await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def backend_error_message(error: Exception) -> str:
    """Human-readable message from a postgrest/storage/transport error."""
    message = getattr(error, "message", None)
    if message:
        return str(message)
    if error.args and isinstance(error.args[0], dict):
        return str(error.args[0].get("message") or error.args[0])
    return str(error) or error.__class__.__name__
