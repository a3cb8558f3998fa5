"""
Database connection management.

Provides the Supabase client singleton used by the supabase storage backend.
The memory backend never touches this module's client.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class DatabaseConnectionError(Exception):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses lru_cache to ensure only one client is created.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        DatabaseConnectionError: If not configured or connection fails
    """
    if not settings.supabase_url or not settings.supabase_key:
        raise DatabaseConnectionError(
            "SUPABASE_URL and SUPABASE_KEY are required for the supabase backend"
        )

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        logger.info(
            "supabase_connected",
            status="success"
        )

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise DatabaseConnectionError(f"Failed to connect to Supabase: {e}") from e


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection() -> dict:
    """
    Check storage health.

    Returns:
        dict: Connection status with details
    """
    if settings.storage_backend == "memory":
        from repositories import get_repository

        return {
            "status": "healthy",
            "backend": "memory",
            "products_count": get_repository("products").count(),
        }

    try:
        client = get_supabase_client()
        products = client.table("products").select("id", count="exact").execute()

        return {
            "status": "healthy",
            "backend": "supabase",
            "products_count": products.count,
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "backend": "supabase",
            "error": str(e)
        }


def reset_connection():
    """
    Reset the cached database connection.

    Call this if connection becomes stale or after config changes.
    """
    get_supabase_client.cache_clear()
    logger.info("database_connection_reset")
