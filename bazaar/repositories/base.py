"""Base repository with shared Supabase client."""
import asyncio
from typing import Any

from supabase import Client


class BaseRepository:
    """Base class for all repositories.

    The Supabase client is synchronous; `_execute` runs the built query in a
    worker thread so handlers stay non-blocking.
    """

    table: str = ""

    def __init__(self, client: Client) -> None:
        self.client = client

    def _table(self):
        return self.client.table(self.table)

    async def _execute(self, query: Any) -> Any:
        return await asyncio.to_thread(query.execute)
