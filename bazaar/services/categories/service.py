"""Category service: CRUD plus per-category product counts."""
import uuid
from typing import Any, Dict, List, Optional

from bazaar.cache import CacheKeys, CacheService, CacheTTL, get_cache
from bazaar.db import get_supabase
from bazaar.errors import ERROR_CATEGORY_EXISTS, ERROR_CATEGORY_NOT_FOUND, ConflictError, NotFoundError
from bazaar.logging import get_logger, sanitize_id_for_logging
from bazaar.models import Category, CategoryCreate, CategoryUpdate, slugify
from bazaar.repositories import CategoryRepository, ProductRepository

logger = get_logger(__name__)


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class CategoryService:
    def __init__(self, repo: CategoryRepository, products: ProductRepository, cache: CacheService):
        self.repo = repo
        self.products = products
        self.cache = cache

    async def list_categories(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        """Categories sorted by name with ``productCount``. Active-only list is cached."""
        if not include_inactive:
            cached = await self.cache.get(CacheKeys.categories())
            if cached is not None:
                return cached

        categories = await self.repo.get_all(include_inactive=include_inactive)
        counts = await self.products.count_by_category()
        result = [self._with_count(c, counts) for c in categories]

        if not include_inactive:
            await self.cache.set(CacheKeys.categories(), result, CacheTTL.CATEGORIES)
        return result

    async def get_category(self, id_or_slug: str) -> Dict[str, Any]:
        """Look up by id when given a UUID, otherwise by slug."""
        cache_key = CacheKeys.category(id_or_slug)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return cached

        if _is_uuid(id_or_slug):
            category = await self.repo.get_by_id(id_or_slug)
        else:
            category = await self.repo.get_by_slug(id_or_slug)
        if not category:
            raise NotFoundError(ERROR_CATEGORY_NOT_FOUND)

        counts = await self.products.count_by_category()
        result = self._with_count(category, counts)
        await self.cache.set(cache_key, result, CacheTTL.CATEGORIES)
        return result

    async def create_category(self, payload: CategoryCreate) -> Category:
        if await self.repo.get_by_name(payload.name.strip()):
            raise ConflictError(ERROR_CATEGORY_EXISTS)

        row = payload.to_row()
        row["name"] = payload.name.strip()
        row["slug"] = slugify(row["name"])
        category = await self.repo.create(row)
        await self._invalidate()
        logger.info(f"Category created: {sanitize_id_for_logging(category.id)}")
        return category

    async def update_category(self, category_id: str, payload: CategoryUpdate) -> Category:
        changes = payload.to_row(exclude_unset=True)
        if changes.get("name"):
            name = changes["name"].strip()
            existing = await self.repo.get_by_name(name)
            if existing and existing.id != category_id:
                raise ConflictError(ERROR_CATEGORY_EXISTS)
            changes["name"] = name
            changes["slug"] = slugify(name)

        category = await self.repo.update(category_id, changes)
        if not category:
            raise NotFoundError(ERROR_CATEGORY_NOT_FOUND)
        await self._invalidate()
        return category

    async def delete_category(self, category_id: str) -> None:
        if not await self.repo.delete(category_id):
            raise NotFoundError(ERROR_CATEGORY_NOT_FOUND)
        await self._invalidate()
        logger.info(f"Category deleted: {sanitize_id_for_logging(category_id)}")

    @staticmethod
    def _with_count(category: Category, counts: Dict[str, int]) -> Dict[str, Any]:
        data = category.to_api()
        data["productCount"] = counts.get(category.name.lower(), 0)
        return data

    async def _invalidate(self) -> None:
        await self.cache.delete_pattern(f"{CacheKeys.CATEGORIES}*")
        await self.cache.delete_pattern(f"{CacheKeys.CATEGORY}*")


_category_service: Optional[CategoryService] = None


def get_category_service() -> CategoryService:
    """Get CategoryService singleton (FastAPI dependency)."""
    global _category_service
    if _category_service is None:
        client = get_supabase()
        _category_service = CategoryService(
            CategoryRepository(client), ProductRepository(client), get_cache()
        )
    return _category_service
