"""Service-role Supabase client factory."""

from supabase import AsyncClient, acreate_client

from bootforge.config import Settings
from bootforge.errors import ConfigurationError


async def create_supabase(settings: Settings) -> AsyncClient:
    """Create the async Supabase client using the service role key.

    Built once in the application lifespan and passed to the stores.
    """
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set"
        )
    return await acreate_client(
        settings.supabase_url,
        settings.supabase_service_role_key,
    )
