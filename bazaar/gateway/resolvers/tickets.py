"""Support ticket queries and mutations (ticket service)."""
from typing import Any, Dict, Optional

import strawberry
from strawberry.types import Info

from bazaar.models import UserRole

from ..context import GatewayContext, require_auth
from ..errors import UNAUTHENTICATED, gateway_error
from ..types import (
    AddTicketCommentInput,
    CreateTicketInput,
    Pagination,
    Ticket,
    TicketConnection,
    TicketStatus,
    input_to_payload,
)


def _connection(body: Dict[str, Any], page: int, limit: int) -> TicketConnection:
    return TicketConnection(
        tickets=[Ticket.from_data(t) for t in body.get("data") or []],
        pagination=Pagination.from_data(body.get("pagination"), page, limit),
    )


@strawberry.type
class TicketQuery:
    @strawberry.field
    async def tickets(
        self,
        info: Info,
        page: Optional[int] = 1,
        limit: Optional[int] = 10,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> TicketConnection:
        context: GatewayContext = info.context
        token = require_auth(context)
        params = {
            "page": page,
            "limit": limit,
            # accept the GraphQL spelling as a filter too
            "status": status.replace("_", "-") if status else None,
            "priority": priority,
            "category": category,
            "customerId": customer_id,
            "search": search,
        }
        body = await context.clients.ticket.get("/api/tickets", params, token=token)
        return _connection(body, page or 1, limit or 10)

    @strawberry.field
    async def ticket(self, info: Info, id: strawberry.ID) -> Optional[Ticket]:
        context: GatewayContext = info.context
        token = require_auth(context)
        body = await context.clients.ticket.get(f"/api/tickets/{id}", token=token)
        data = body.get("data")
        return Ticket.from_data(data) if data else None

    @strawberry.field
    async def my_tickets(self, info: Info, page: Optional[int] = 1, limit: Optional[int] = 10) -> TicketConnection:
        context: GatewayContext = info.context
        token = require_auth(context)
        if context.user is None:
            raise gateway_error("User ID not found in token", UNAUTHENTICATED)

        params = {"page": page, "limit": limit, "customerId": context.user.id}
        body = await context.clients.ticket.get("/api/tickets", params, token=token)
        return _connection(body, page or 1, limit or 10)


@strawberry.type
class TicketMutation:
    @strawberry.mutation
    async def create_ticket(self, info: Info, input: CreateTicketInput) -> Ticket:
        context: GatewayContext = info.context
        token = require_auth(context)
        payload = input_to_payload(input)
        if context.user and (context.user.role != UserRole.ADMIN.value or not payload.get("customerId")):
            payload["customerId"] = context.user.id
        body = await context.clients.ticket.post("/api/tickets", payload, token=token)
        return Ticket.from_data(body["data"])

    @strawberry.mutation
    async def add_ticket_comment(self, info: Info, input: AddTicketCommentInput) -> Ticket:
        context: GatewayContext = info.context
        token = require_auth(context)
        payload = {"message": input.message, "isInternal": input.is_internal}
        body = await context.clients.ticket.post(
            f"/api/tickets/{input.ticket_id}/comments", payload, token=token
        )
        return Ticket.from_data(body["data"])

    @strawberry.mutation
    async def update_ticket_status(
        self,
        info: Info,
        id: strawberry.ID,
        status: TicketStatus,
        resolution: Optional[str] = None,
    ) -> Ticket:
        context: GatewayContext = info.context
        token = require_auth(context)
        payload = {"status": status.value}
        if resolution is not None:
            payload["resolution"] = resolution
        body = await context.clients.ticket.patch(f"/api/tickets/{id}/status", payload, token=token)
        return Ticket.from_data(body["data"])
