"""Order Repository - one row per (customer, seller) order with embedded items."""
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bazaar.models import Order
from .base import BaseRepository


class OrderRepository(BaseRepository):
    """Order database operations."""

    table = "orders"

    async def list(
        self,
        offset: int,
        limit: int,
        customer_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Order], int]:
        builder = self._table().select("*", count="exact")
        if customer_id:
            builder = builder.eq("customer_id", customer_id)
        if status:
            builder = builder.eq("order_status", status)
        builder = builder.order("created_at", desc=True).range(offset, offset + limit - 1)
        result = await self._execute(builder)
        return [Order(**row) for row in (result.data or [])], result.count or 0

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._execute(self._table().select("*").eq("id", order_id).limit(1))
        return Order(**result.data[0]) if result.data else None

    async def create_many(self, rows: List[Dict[str, Any]]) -> List[Order]:
        """Insert all sub-orders of one checkout in a single statement."""
        result = await self._execute(self._table().insert(rows))
        return [Order(**row) for row in (result.data or [])]

    async def update(self, order_id: str, data: Dict[str, Any]) -> Optional[Order]:
        data = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = await self._execute(self._table().update(data).eq("id", order_id))
        return Order(**result.data[0]) if result.data else None

    async def for_seller(
        self,
        seller_id: str,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[Order], int]:
        """Orders holding at least one item sold by ``seller_id``, newest first."""
        # jsonb containment; a string goes to PostgREST unchanged
        element = json.dumps([{"seller_id": seller_id}])
        builder = self._table().select("*", count="exact").contains("items", element)
        builder = builder.order("created_at", desc=True)
        if offset is not None and limit is not None:
            builder = builder.range(offset, offset + limit - 1)
        result = await self._execute(builder)
        return [Order(**row) for row in (result.data or [])], result.count or 0

    async def status_totals(self) -> List[Dict[str, Any]]:
        """``order_status`` and ``total`` of every order (admin dashboard)."""
        result = await self._execute(self._table().select("order_status,total"))
        return result.data or []
