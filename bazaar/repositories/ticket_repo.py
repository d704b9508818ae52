"""Ticket Repository - support tickets with embedded comments."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bazaar.listing import clean_search, ilike_any
from bazaar.models import Ticket
from .base import BaseRepository

SEARCH_COLUMNS = ("subject", "ticket_id", "customer_email")


class TicketRepository(BaseRepository):
    """Ticket database operations."""

    table = "tickets"

    async def list(
        self,
        offset: int,
        limit: int,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Ticket], int]:
        builder = self._table().select("*", count="exact")
        if status:
            builder = builder.eq("status", status)
        if priority:
            builder = builder.eq("priority", priority)
        if category:
            builder = builder.eq("category", category)
        if customer_id:
            builder = builder.eq("customer_id", customer_id)
        term = clean_search(search)
        if term:
            builder = builder.or_(ilike_any(SEARCH_COLUMNS, term))
        builder = builder.order("created_at", desc=True).range(offset, offset + limit - 1)
        result = await self._execute(builder)
        return [Ticket(**row) for row in (result.data or [])], result.count or 0

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        result = await self._execute(self._table().select("*").eq("id", ticket_id).limit(1))
        return Ticket(**result.data[0]) if result.data else None

    async def create(self, data: Dict[str, Any]) -> Ticket:
        result = await self._execute(self._table().insert(data))
        return Ticket(**result.data[0])

    async def update(self, ticket_id: str, data: Dict[str, Any]) -> Optional[Ticket]:
        data = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = await self._execute(self._table().update(data).eq("id", ticket_id))
        return Ticket(**result.data[0]) if result.data else None
