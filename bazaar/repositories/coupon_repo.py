"""Coupon Repository."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bazaar.listing import clean_search, escape_like
from bazaar.models import Coupon
from .base import BaseRepository


class CouponRepository(BaseRepository):
    """Coupon database operations."""

    table = "coupons"

    async def list(
        self,
        offset: int,
        limit: int,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Coupon], int]:
        builder = self._table().select("*", count="exact")
        if is_active is not None:
            builder = builder.eq("is_active", is_active)
        term = clean_search(search)
        if term:
            builder = builder.ilike("code", f"%{escape_like(term.upper())}%")
        builder = builder.order("created_at", desc=True).range(offset, offset + limit - 1)
        result = await self._execute(builder)
        return [Coupon(**row) for row in (result.data or [])], result.count or 0

    async def get_by_id(self, coupon_id: str) -> Optional[Coupon]:
        result = await self._execute(self._table().select("*").eq("id", coupon_id).limit(1))
        return Coupon(**result.data[0]) if result.data else None

    async def get_by_code(self, code: str) -> Optional[Coupon]:
        result = await self._execute(self._table().select("*").eq("code", code.upper()).limit(1))
        return Coupon(**result.data[0]) if result.data else None

    async def create(self, data: Dict[str, Any]) -> Coupon:
        result = await self._execute(self._table().insert(data))
        return Coupon(**result.data[0])

    async def update(self, coupon_id: str, data: Dict[str, Any]) -> Optional[Coupon]:
        data = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = await self._execute(self._table().update(data).eq("id", coupon_id))
        return Coupon(**result.data[0]) if result.data else None

    async def delete(self, coupon_id: str) -> bool:
        result = await self._execute(self._table().delete().eq("id", coupon_id))
        return bool(result.data)

    async def increment_usage(self, coupon_id: str, current_count: int) -> Optional[Coupon]:
        """
        Compare-and-set ``usage_count`` from ``current_count`` to the next value.

        Returns None when another redemption changed the count first.
        """
        data = {
            "usage_count": current_count + 1,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        builder = self._table().update(data).eq("id", coupon_id).eq("usage_count", current_count)
        result = await self._execute(builder)
        return Coupon(**result.data[0]) if result.data else None
