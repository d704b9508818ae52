"""Tickets API Router"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from bazaar.auth import TokenPayload, authenticate, optional_auth, require_admin
from bazaar.config import Pagination
from bazaar.models import TicketAssign, TicketCommentCreate, TicketCreate, TicketStatusUpdate
from bazaar.services.app import ok

from .service import TicketService, get_ticket_service

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


@router.get("")
async def list_tickets(
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.DEFAULT_LIMIT, ge=1, le=Pagination.MAX_PAGE_SIZE),
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    search: Optional[str] = Query(None),
    user: TokenPayload = Depends(authenticate),
    service: TicketService = Depends(get_ticket_service),
):
    result = await service.list_tickets(
        user, page, limit,
        status=status, priority=priority, category=category,
        customer_id=customer_id, search=search,
    )
    return ok(result["tickets"], pagination=result["pagination"])


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: str,
    user: TokenPayload = Depends(authenticate),
    service: TicketService = Depends(get_ticket_service),
):
    return ok(await service.get_ticket(ticket_id, user))


@router.post("", status_code=201)
async def create_ticket(
    payload: TicketCreate,
    user: Optional[TokenPayload] = Depends(optional_auth),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.create_ticket(payload, user)
    return ok(ticket.to_api(), "Ticket created successfully")


@router.post("/{ticket_id}/comments")
async def add_comment(
    ticket_id: str,
    payload: TicketCommentCreate,
    user: TokenPayload = Depends(authenticate),
    service: TicketService = Depends(get_ticket_service),
):
    return ok(await service.add_comment(ticket_id, payload, user), "Comment added")


@router.patch("/{ticket_id}/status")
async def update_status(
    ticket_id: str,
    payload: TicketStatusUpdate,
    admin: TokenPayload = Depends(require_admin),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.update_status(ticket_id, payload)
    return ok(ticket.to_api(), "Ticket status updated")


@router.patch("/{ticket_id}/assign")
async def assign_ticket(
    ticket_id: str,
    payload: TicketAssign,
    admin: TokenPayload = Depends(require_admin),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.assign(ticket_id, payload)
    return ok(ticket.to_api(), "Ticket assigned")
