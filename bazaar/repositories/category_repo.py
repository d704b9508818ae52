"""Category Repository."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bazaar.models import Category
from .base import BaseRepository


class CategoryRepository(BaseRepository):
    """Category database operations."""

    table = "categories"

    async def get_all(self, include_inactive: bool = False) -> List[Category]:
        builder = self._table().select("*")
        if not include_inactive:
            builder = builder.eq("is_active", True)
        result = await self._execute(builder.order("name"))
        return [Category(**row) for row in (result.data or [])]

    async def get_by_id(self, category_id: str) -> Optional[Category]:
        result = await self._execute(self._table().select("*").eq("id", category_id).limit(1))
        return Category(**result.data[0]) if result.data else None

    async def get_by_slug(self, slug: str) -> Optional[Category]:
        result = await self._execute(self._table().select("*").eq("slug", slug).limit(1))
        return Category(**result.data[0]) if result.data else None

    async def get_by_name(self, name: str) -> Optional[Category]:
        result = await self._execute(self._table().select("*").ilike("name", name).limit(1))
        return Category(**result.data[0]) if result.data else None

    async def create(self, data: Dict[str, Any]) -> Category:
        result = await self._execute(self._table().insert(data))
        return Category(**result.data[0])

    async def update(self, category_id: str, data: Dict[str, Any]) -> Optional[Category]:
        data = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = await self._execute(self._table().update(data).eq("id", category_id))
        return Category(**result.data[0]) if result.data else None

    async def delete(self, category_id: str) -> bool:
        result = await self._execute(self._table().delete().eq("id", category_id))
        return bool(result.data)
