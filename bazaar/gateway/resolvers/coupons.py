"""Coupon queries and mutations (coupon service)."""
from typing import Optional

import strawberry
from strawberry.types import Info

from ..context import GatewayContext, require_auth
from ..types import (
    Coupon,
    CouponConnection,
    CouponValidation,
    CreateCouponInput,
    Pagination,
    UpdateCouponInput,
    input_to_payload,
)


@strawberry.type
class CouponQuery:
    @strawberry.field
    async def coupons(
        self,
        info: Info,
        page: Optional[int] = 1,
        limit: Optional[int] = 10,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> CouponConnection:
        context: GatewayContext = info.context
        token = require_auth(context)
        params = {"page": page, "limit": limit, "isActive": is_active, "search": search}
        body = await context.clients.coupon.get("/api/coupons", params, token=token)
        data = body.get("data") or {}
        return CouponConnection(
            coupons=[Coupon.from_data(c) for c in data.get("coupons") or []],
            pagination=Pagination.from_data(data.get("pagination"), page or 1, limit or 10),
        )

    @strawberry.field
    async def validate_coupon(self, info: Info, code: str, order_total: float) -> CouponValidation:
        context: GatewayContext = info.context
        body = await context.clients.coupon.post(
            "/api/coupons/validate", {"code": code, "orderTotal": order_total}, token=context.token
        )
        return CouponValidation.from_data(body.get("data") or {"valid": False})


@strawberry.type
class CouponMutation:
    @strawberry.mutation
    async def create_coupon(self, info: Info, input: CreateCouponInput) -> Coupon:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.coupon.post("/api/coupons", input_to_payload(input), token=token)
        return Coupon.from_data(body["data"])

    @strawberry.mutation
    async def update_coupon(self, info: Info, id: strawberry.ID, input: UpdateCouponInput) -> Coupon:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.coupon.put(f"/api/coupons/{id}", input_to_payload(input), token=token)
        return Coupon.from_data(body["data"])

    @strawberry.mutation
    async def delete_coupon(self, info: Info, id: strawberry.ID) -> bool:
        context: GatewayContext = info.context
        token = require_auth(context)
        await context.clients.coupon.delete(f"/api/coupons/{id}", token=token)
        return True
