"""
Product catalog service.

Cache-aside over the product repository:
- plain listings live under ``products:{page}:{limit}``
- active product details live under ``product:{id}``
- every write drops the affected detail key and all listing pages
"""
from typing import Any, Dict, Optional

from bazaar.auth import TokenPayload
from bazaar.cache import CacheKeys, CacheService, CacheTTL, get_cache
from bazaar.db import get_supabase
from bazaar.errors import ERROR_OWNERSHIP, ERROR_PRODUCT_NOT_FOUND, ForbiddenError, NotFoundError
from bazaar.listing import ProductQuery
from bazaar.logging import get_logger, sanitize_id_for_logging
from bazaar.models import Pagination, Product, ProductCreate, ProductUpdate
from bazaar.repositories import ProductRepository

logger = get_logger(__name__)

LISTING_PATTERN = f"{CacheKeys.PRODUCTS}*"


class ProductService:
    """Catalog reads and writes with cache invalidation."""

    def __init__(self, repo: ProductRepository, cache: CacheService):
        self.repo = repo
        self.cache = cache

    async def list_products(self, query: ProductQuery) -> Dict[str, Any]:
        """
        Page of products plus pagination.

        Returns ``{"data": {products, pagination}, "from_cache": bool}``.
        """
        cache_key = CacheKeys.products(query.page, query.limit)
        if query.is_plain:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Returning cached products page={query.page} limit={query.limit}")
                return {"data": cached, "from_cache": True}

        products, total = await self.repo.list(query)
        result = {
            "products": [p.to_api() for p in products],
            "pagination": Pagination.build(query.page, query.limit, total).to_api(),
        }

        if query.is_plain:
            await self.cache.set(cache_key, result, CacheTTL.PRODUCTS)

        logger.info(f"Fetched {len(products)} products (total={total}, page={query.page})")
        return {"data": result, "from_cache": False}

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        """Active product by id. Returns ``{"data", "from_cache"}``."""
        cache_key = CacheKeys.product(product_id)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return {"data": cached, "from_cache": True}

        product = await self.repo.get_by_id(product_id)
        if not product:
            logger.warning(f"Product not found: {sanitize_id_for_logging(product_id)}")
            raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)

        data = product.to_api()
        await self.cache.set(cache_key, data, CacheTTL.PRODUCT_DETAIL)
        return {"data": data, "from_cache": False}

    async def get_seller_products(self, seller_id: str) -> Dict[str, Any]:
        products = await self.repo.get_by_seller(seller_id)
        return {"products": [p.to_api() for p in products], "count": len(products)}

    async def create_product(self, payload: ProductCreate, user: TokenPayload) -> Product:
        row = payload.to_row()
        # Sellers always own what they create; admins may create on behalf of a seller
        if not user.is_admin or not row.get("seller_id"):
            row["seller_id"] = user.user_id

        product = await self.repo.create(row)
        await self.cache.delete_pattern(LISTING_PATTERN)
        logger.info(f"Product created: {sanitize_id_for_logging(product.id)}")
        return product

    async def update_product(
        self, product_id: str, payload: ProductUpdate, user: TokenPayload
    ) -> Product:
        await self._check_owner(product_id, user)
        changes = payload.to_row(exclude_unset=True)
        product = await self.repo.update(product_id, changes)
        if not product:
            raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)

        await self._invalidate(product_id)
        logger.info(f"Product updated: {sanitize_id_for_logging(product_id)}")
        return product

    async def delete_product(self, product_id: str, user: TokenPayload) -> None:
        """Soft delete (isActive=false)."""
        await self._check_owner(product_id, user)
        product = await self.repo.soft_delete(product_id)
        if not product:
            raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)

        await self._invalidate(product_id)
        logger.info(f"Product deleted: {sanitize_id_for_logging(product_id)}")

    async def _check_owner(self, product_id: str, user: TokenPayload) -> Product:
        product = await self.repo.get_by_id(product_id, active_only=False)
        if not product:
            raise NotFoundError(ERROR_PRODUCT_NOT_FOUND)
        if not user.is_admin and product.seller_id != user.user_id:
            raise ForbiddenError(ERROR_OWNERSHIP)
        return product

    async def _invalidate(self, product_id: str) -> None:
        await self.cache.delete(CacheKeys.product(product_id))
        await self.cache.delete_pattern(LISTING_PATTERN)


_product_service: Optional[ProductService] = None


def get_product_service() -> ProductService:
    """Get ProductService singleton (FastAPI dependency)."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService(ProductRepository(get_supabase()), get_cache())
    return _product_service
