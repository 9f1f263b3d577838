"""Supabase client construction for database operations."""

from typing import Any

from fastapi import Request
from supabase import Client, create_client

from storefront.core.config import Settings, get_settings


def create_supabase_client(settings: Settings | None = None) -> Client:
    """Create a Supabase client for database operations.

    Uses the secret key for backend operations, which bypasses RLS at the
    PostgREST level. The application creates exactly one client at startup
    (see the lifespan in ``storefront.main``) and hands it to request
    handlers through ``get_db``.

    Args:
        settings: Optional settings override, defaults to the cached settings.

    Returns:
        Client: Supabase client instance.
    """
    settings = settings or get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


def get_db(request: Request) -> Client:
    """FastAPI dependency returning the client created at startup.

    Raises:
        RuntimeError: If the application lifespan has not initialized the client.
    """
    client = getattr(request.app.state, "supabase", None)
    if client is None:
        raise RuntimeError("Supabase client is not initialized")
    return client


async def check_database_connection(client: Client, table: str | None = None) -> dict[str, Any]:
    """Check if database connection is healthy.

    Performs a simple query against the orders table to verify connectivity.

    Args:
        client: Supabase client to check.
        table: Table to query, defaults to the configured orders table.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    table = table or get_settings().orders_table
    try:
        client.table(table).select("order_id").limit(1).execute()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
