"""Supabase database handle with an explicit open/close lifecycle."""

import logging
from typing import Any

from supabase import Client, create_client

from src.core.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """Owns the Supabase client used by the catalog, order and contact stores.

    The handle is constructed once at process startup, opened in the
    application lifespan and closed on shutdown. Services receive the
    client through dependency injection rather than a module-level cache.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize the handle without connecting.

        Args:
            settings: Application settings carrying the Supabase credentials.
        """
        self._settings = settings
        self._client: Client | None = None

    @property
    def is_open(self) -> bool:
        """Whether open() has been called and close() has not."""
        return self._client is not None

    @property
    def client(self) -> Client:
        """Get the open Supabase client.

        Raises:
            RuntimeError: If the handle has not been opened.
        """
        if self._client is None:
            raise RuntimeError("Database handle is not open")
        return self._client

    def open(self) -> Client:
        """Create the Supabase client. Calling twice returns the same client."""
        if self._client is None:
            self._client = create_client(
                self._settings.supabase_url,
                self._settings.supabase_secret_key,
            )
            logger.info("Database handle opened for %s", self._settings.supabase_url)
        return self._client

    def close(self) -> None:
        """Release the PostgREST HTTP session and drop the client."""
        if self._client is None:
            return
        self._client.postgrest.session.close()
        self._client = None
        logger.info("Database handle closed")

    async def check_connection(self) -> dict[str, Any]:
        """Check if database connection is healthy.

        Performs a simple query to verify database connectivity.

        Returns:
            dict: Connection status with 'healthy' boolean and optional 'error' message.
        """
        try:
            self.client.table("products").select("id").limit(1).execute()
            return {"healthy": True}
        except Exception as e:
            return {"healthy": False, "error": str(e)}
