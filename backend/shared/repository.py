"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and providing shared utilities for data operations.
"""

import asyncio
from datetime import datetime
from typing import Any, TypeVar, Generic, Optional
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all Supabase-backed repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - _execute() to run a built query off the event loop
    - Generic type parameter for model type hints

    Subclasses implement domain-specific data access methods and handle
    dict-to-Pydantic model mapping internally.

    Example:
        class CredentialRepository(BaseRepository[Credential]):
            async def find_by_id(self, user_id: str) -> Optional[Credential]:
                query = self._db.table("users").select("*").eq("id", user_id)
                result = await self._execute(query)
                if not result.data:
                    return None
                return self._map_to_credential(result.data[0])
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db

    @staticmethod
    def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
        """Parse an ISO-8601 timestamp column, tolerating a trailing 'Z'."""
        if not value:
            return None
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    @staticmethod
    async def _execute(query: Any) -> Any:
        """
        Execute a built PostgREST query in a worker thread.

        The Supabase client is synchronous, so the round trip runs in a
        thread instead of on the event loop.
        """
        return await asyncio.to_thread(query.execute)
