"""Category queries and mutations (category service)."""
from typing import List, Optional

import strawberry
from strawberry.types import Info

from bazaar.cache import CacheTTL

from ..caching import CATEGORY_PATTERNS, cached, invalidate
from ..context import GatewayContext, require_auth
from ..types import Category, CreateCategoryInput, UpdateCategoryInput, input_to_payload


@strawberry.type
class CategoryQuery:
    @strawberry.field
    async def categories(self, info: Info) -> List[Category]:
        context: GatewayContext = info.context

        async def fetch():
            body = await context.clients.category.get("/api/categories", token=context.token)
            return body.get("data") or []

        data = await cached(context, "categories", {}, CacheTTL.GATEWAY_CATEGORIES, fetch)
        return [Category.from_data(c) for c in data]

    @strawberry.field
    async def category(self, info: Info, id: strawberry.ID) -> Optional[Category]:
        context: GatewayContext = info.context

        async def fetch():
            body = await context.clients.category.get(f"/api/categories/{id}", token=context.token)
            return body.get("data")

        data = await cached(context, "category", {"id": id}, CacheTTL.GATEWAY_CATEGORIES, fetch)
        return Category.from_data(data) if data else None


@strawberry.type
class CategoryMutation:
    @strawberry.mutation
    async def create_category(self, info: Info, input: CreateCategoryInput) -> Category:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.category.post("/api/categories", input_to_payload(input), token=token)
        await invalidate(context.cache, CATEGORY_PATTERNS)
        return Category.from_data(body["data"])

    @strawberry.mutation
    async def update_category(self, info: Info, id: strawberry.ID, input: UpdateCategoryInput) -> Category:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.category.put(
            f"/api/categories/{id}", input_to_payload(input), token=token
        )
        await invalidate(context.cache, CATEGORY_PATTERNS)
        return Category.from_data(body["data"])

    @strawberry.mutation
    async def delete_category(self, info: Info, id: strawberry.ID) -> bool:
        context: GatewayContext = info.context
        token = require_auth(context)
        await context.clients.category.delete(f"/api/categories/{id}", token=token)
        await invalidate(context.cache, CATEGORY_PATTERNS)
        return True
