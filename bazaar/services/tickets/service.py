"""
Support ticket service.

Customers only ever see their own tickets and never see internal comments.
Admins see everything and manage status and assignment.
"""
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bazaar.auth import TokenPayload
from bazaar.db import get_supabase
from bazaar.errors import (
    ERROR_OWNERSHIP,
    ERROR_TICKET_CLOSED,
    ERROR_TICKET_NOT_FOUND,
    ForbiddenError,
    NotFoundError,
    ValidationFailed,
)
from bazaar.logging import get_logger, sanitize_id_for_logging
from bazaar.models import (
    Pagination,
    Ticket,
    TicketAssign,
    TicketCommentCreate,
    TicketCreate,
    TicketStatus,
    TicketStatusUpdate,
)
from bazaar.repositories import TicketRepository

logger = get_logger(__name__)

TICKET_PREFIX = "TKT"
_BASE36 = string.digits + string.ascii_uppercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_ticket_id(now_ms: Optional[int] = None) -> str:
    """``TKT-<base36 millis>-<4 random chars>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{TICKET_PREFIX}-{_base36(now_ms)}-{suffix}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TicketService:
    def __init__(self, repo: TicketRepository):
        self.repo = repo

    async def list_tickets(
        self,
        user: TokenPayload,
        page: int,
        limit: int,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not user.is_admin:
            customer_id = user.user_id

        tickets, total = await self.repo.list(
            (page - 1) * limit,
            limit,
            status=status,
            priority=priority,
            category=category,
            customer_id=customer_id,
            search=search,
        )
        return {
            "tickets": [self._visible(t, user) for t in tickets],
            "pagination": Pagination.build(page, limit, total).to_api(),
        }

    async def get_ticket(self, ticket_id: str, user: TokenPayload) -> Dict[str, Any]:
        ticket = await self._load(ticket_id, user)
        return self._visible(ticket, user)

    async def create_ticket(self, payload: TicketCreate, user: Optional[TokenPayload]) -> Ticket:
        row = payload.to_row()
        # only admins may file a ticket on behalf of another customer
        if user is None:
            row["customer_id"] = None
        elif not user.is_admin or not row.get("customer_id"):
            row["customer_id"] = user.user_id
        row.update(
            ticket_id=generate_ticket_id(),
            status=TicketStatus.OPEN.value,
            comments=[],
        )
        ticket = await self.repo.create(row)
        logger.info(f"Ticket created: {ticket.ticket_id}")
        return ticket

    async def add_comment(
        self, ticket_id: str, payload: TicketCommentCreate, user: TokenPayload
    ) -> Dict[str, Any]:
        ticket = await self._load(ticket_id, user)
        if ticket.status == TicketStatus.CLOSED:
            raise ValidationFailed(ERROR_TICKET_CLOSED)

        comment = {
            "user_id": user.user_id,
            "user_name": user.display_name,
            "user_role": user.role.value,
            "message": payload.message,
            # customers cannot post internal notes
            "is_internal": payload.is_internal and user.is_admin,
            "created_at": _now_iso(),
        }
        comments = [c.to_row() for c in ticket.comments] + [comment]
        updated = await self.repo.update(ticket.id, {"comments": comments})
        if not updated:
            raise NotFoundError(ERROR_TICKET_NOT_FOUND)
        return self._visible(updated, user)

    async def update_status(self, ticket_id: str, payload: TicketStatusUpdate) -> Ticket:
        changes: Dict[str, Any] = {"status": payload.status.value}
        if payload.resolution is not None:
            changes["resolution"] = payload.resolution
        if payload.status == TicketStatus.RESOLVED:
            changes["resolved_at"] = _now_iso()
        elif payload.status == TicketStatus.CLOSED:
            changes["closed_at"] = _now_iso()

        ticket = await self.repo.update(ticket_id, changes)
        if not ticket:
            raise NotFoundError(ERROR_TICKET_NOT_FOUND)
        logger.info(f"Ticket {ticket.ticket_id} -> {payload.status.value}")
        return ticket

    async def assign(self, ticket_id: str, payload: TicketAssign) -> Ticket:
        """Assign to a staff member; an open ticket moves to in-progress."""
        current = await self.repo.get_by_id(ticket_id)
        if not current:
            raise NotFoundError(ERROR_TICKET_NOT_FOUND)

        changes: Dict[str, Any] = payload.to_row()
        if current.status == TicketStatus.OPEN:
            changes["status"] = TicketStatus.IN_PROGRESS.value

        ticket = await self.repo.update(ticket_id, changes)
        if not ticket:
            raise NotFoundError(ERROR_TICKET_NOT_FOUND)
        logger.info(
            f"Ticket {ticket.ticket_id} assigned to {sanitize_id_for_logging(payload.assigned_to)}"
        )
        return ticket

    async def _load(self, ticket_id: str, user: TokenPayload) -> Ticket:
        ticket = await self.repo.get_by_id(ticket_id)
        if not ticket:
            raise NotFoundError(ERROR_TICKET_NOT_FOUND)
        if not user.is_admin and ticket.customer_id != user.user_id:
            raise ForbiddenError(ERROR_OWNERSHIP)
        return ticket

    @staticmethod
    def _visible(ticket: Ticket, user: TokenPayload) -> Dict[str, Any]:
        data = ticket.to_api()
        if not user.is_admin:
            data["comments"] = [c for c in data["comments"] if not c.get("isInternal")]
        return data


_ticket_service: Optional[TicketService] = None


def get_ticket_service() -> TicketService:
    """Get TicketService singleton (FastAPI dependency)."""
    global _ticket_service
    if _ticket_service is None:
        _ticket_service = TicketService(TicketRepository(get_supabase()))
    return _ticket_service
