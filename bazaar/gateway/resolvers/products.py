"""Product queries and mutations (product service)."""
from typing import List, Optional

import strawberry
from strawberry.types import Info

from bazaar.cache import CacheTTL

from ..caching import PRODUCT_PATTERNS, cached, invalidate
from ..context import GatewayContext, require_auth
from ..types import (
    CreateProductInput,
    Product,
    ProductConnection,
    UpdateProductInput,
    input_to_payload,
)


@strawberry.type
class ProductQuery:
    @strawberry.field
    async def products(
        self,
        info: Info,
        page: Optional[int] = 1,
        limit: Optional[int] = 20,
        search: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        featured: Optional[bool] = None,
        include_inactive: Optional[bool] = None,
        seller_id: Optional[str] = None,
    ) -> ProductConnection:
        context: GatewayContext = info.context
        params = {
            "page": page,
            "limit": limit,
            "search": search,
            "category": category,
            "minPrice": min_price,
            "maxPrice": max_price,
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "featured": featured,
            "includeInactive": include_inactive,
            "sellerId": seller_id,
        }

        async def fetch():
            body = await context.clients.product.get("/api/products", params, token=context.token)
            return body.get("data") or {}

        data = await cached(
            context, "products", params, CacheTTL.GATEWAY_PRODUCTS, fetch,
            cacheable=not include_inactive,
        )
        return ProductConnection.from_data(data)

    @strawberry.field
    async def product(self, info: Info, id: strawberry.ID) -> Optional[Product]:
        context: GatewayContext = info.context

        async def fetch():
            body = await context.clients.product.get(f"/api/products/{id}", token=context.token)
            return body.get("data")

        data = await cached(context, "product", {"id": id}, CacheTTL.GATEWAY_PRODUCTS, fetch)
        return Product.from_data(data) if data else None

    @strawberry.field
    async def products_by_seller(self, info: Info, seller_id: str) -> List[Product]:
        context: GatewayContext = info.context

        async def fetch():
            body = await context.clients.product.get(
                f"/api/products/seller/{seller_id}", token=context.token
            )
            return (body.get("data") or {}).get("products") or []

        data = await cached(
            context, "productsBySeller", {"sellerId": seller_id}, CacheTTL.GATEWAY_PRODUCTS, fetch
        )
        return [Product.from_data(p) for p in data]


@strawberry.type
class ProductMutation:
    @strawberry.mutation
    async def create_product(self, info: Info, input: CreateProductInput) -> Product:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.product.post("/api/products", input_to_payload(input), token=token)
        await invalidate(context.cache, PRODUCT_PATTERNS)
        return Product.from_data(body["data"]["product"])

    @strawberry.mutation
    async def update_product(self, info: Info, id: strawberry.ID, input: UpdateProductInput) -> Product:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.product.put(f"/api/products/{id}", input_to_payload(input), token=token)
        await invalidate(context.cache, PRODUCT_PATTERNS)
        return Product.from_data(body["data"]["product"])

    @strawberry.mutation
    async def delete_product(self, info: Info, id: strawberry.ID) -> bool:
        context: GatewayContext = info.context
        token = require_auth(context)
        await context.clients.product.delete(f"/api/products/{id}", token=token)
        await invalidate(context.cache, PRODUCT_PATTERNS)
        return True
