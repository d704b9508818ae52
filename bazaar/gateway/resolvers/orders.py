"""Order queries and mutations (order service). Never cached."""
from typing import Any, Dict, Optional

import strawberry
from strawberry.types import Info

from ..context import GatewayContext, require_auth
from ..types import (
    CheckoutResult,
    CreateOrderInput,
    Order,
    OrderConnection,
    OrderStatus,
    Pagination,
    PaymentStatus,
    order_input_to_payload,
)


def _connection(data: Dict[str, Any], page: int, limit: int) -> OrderConnection:
    return OrderConnection(
        orders=[Order.from_data(o) for o in data.get("orders") or []],
        pagination=Pagination.from_data(data.get("pagination"), page, limit),
    )


@strawberry.type
class OrderQuery:
    @strawberry.field
    async def orders(
        self,
        info: Info,
        page: Optional[int] = 1,
        limit: Optional[int] = 20,
        status: Optional[OrderStatus] = None,
        customer_id: Optional[str] = None,
    ) -> OrderConnection:
        """The caller's orders; admins see all of them."""
        context: GatewayContext = info.context
        token = require_auth(context)
        params = {
            "page": page,
            "limit": limit,
            "status": status.value if status else None,
            "customerId": customer_id,
        }
        body = await context.clients.order.get("/api/orders", params, token=token)
        return _connection(body.get("data") or {}, page or 1, limit or 20)

    @strawberry.field
    async def order(self, info: Info, id: strawberry.ID) -> Optional[Order]:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.order.get(f"/api/orders/{id}", token=token)
        data = body.get("data")
        return Order.from_data(data) if data else None


@strawberry.type
class OrderMutation:
    @strawberry.mutation
    async def create_order(self, info: Info, input: CreateOrderInput) -> CheckoutResult:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.order.post("/api/orders", order_input_to_payload(input), token=token)
        data = body.get("data") or {}
        orders = [Order.from_data(o) for o in data.get("orders") or []]
        return CheckoutResult(orders=orders, order_count=len(orders))

    @strawberry.mutation
    async def cancel_order(self, info: Info, id: strawberry.ID) -> Order:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.order.post(f"/api/orders/{id}/cancel", token=token)
        return Order.from_data(body["data"])

    @strawberry.mutation
    async def update_order_status(self, info: Info, id: strawberry.ID, status: OrderStatus) -> Order:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.order.patch(
            f"/api/orders/{id}/status", {"orderStatus": status.value}, token=token
        )
        return Order.from_data(body["data"])

    @strawberry.mutation
    async def update_payment_status(self, info: Info, id: strawberry.ID, status: PaymentStatus) -> Order:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.order.patch(
            f"/api/orders/{id}/payment", {"paymentStatus": status.value}, token=token
        )
        return Order.from_data(body["data"])
