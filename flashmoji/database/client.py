"""
Supabase Client Configuration

The queue and the storage backend run server-side without a user
context, so only the service-role client is needed.
"""

from functools import lru_cache

from supabase import create_client, Client

from flashmoji.config import config
from flashmoji.errors import FlashmojiError


class SupabaseClientError(FlashmojiError):
    """Raised when Supabase client cannot be initialized."""
    pass


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """
    Get Supabase client with service role key (admin access).

    WARNING: This client bypasses Row Level Security!
    Only use for server-side operations.
    """
    if not config.SUPABASE_URL:
        raise SupabaseClientError(
            "SUPABASE_URL is not configured. "
            "Set it in your .env file or environment variables."
        )

    if not config.SUPABASE_SERVICE_KEY:
        raise SupabaseClientError(
            "SUPABASE_SERVICE_KEY is not configured. "
            "Set it in your .env file or environment variables."
        )

    return create_client(
        config.SUPABASE_URL,
        config.SUPABASE_SERVICE_KEY
    )
