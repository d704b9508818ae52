"""Product Repository - Product catalog operations."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bazaar.listing import ProductQuery
from bazaar.models import Product
from .base import BaseRepository


class ProductRepository(BaseRepository):
    """Product database operations."""

    table = "products"

    async def list(self, query: ProductQuery) -> Tuple[List[Product], int]:
        """Run a listing query. Returns (page of products, total matches)."""
        builder = query.apply(self._table().select("*", count="exact"))
        result = await self._execute(builder)
        products = [Product(**row) for row in (result.data or [])]
        return products, result.count or 0

    async def get_by_id(self, product_id: str, active_only: bool = True) -> Optional[Product]:
        builder = self._table().select("*").eq("id", product_id)
        if active_only:
            builder = builder.eq("is_active", True)
        result = await self._execute(builder.limit(1))
        if not result.data:
            return None
        return Product(**result.data[0])

    async def get_by_seller(self, seller_id: str) -> List[Product]:
        """Active products of one seller, newest first."""
        builder = (
            self._table()
            .select("*")
            .eq("seller_id", seller_id)
            .eq("is_active", True)
            .order("created_at", desc=True)
        )
        result = await self._execute(builder)
        return [Product(**row) for row in (result.data or [])]

    async def create(self, data: Dict[str, Any]) -> Product:
        result = await self._execute(self._table().insert(data))
        return Product(**result.data[0])

    async def update(self, product_id: str, data: Dict[str, Any]) -> Optional[Product]:
        data = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = await self._execute(self._table().update(data).eq("id", product_id))
        return Product(**result.data[0]) if result.data else None

    async def soft_delete(self, product_id: str) -> Optional[Product]:
        return await self.update(product_id, {"is_active": False})

    async def count_by_category(self) -> Dict[str, int]:
        """Active product count per lower-cased category name."""
        result = await self._execute(self._table().select("category").eq("is_active", True))
        counts: Dict[str, int] = {}
        for row in result.data or []:
            name = (row.get("category") or "").lower()
            if name:
                counts[name] = counts.get(name, 0) + 1
        return counts
