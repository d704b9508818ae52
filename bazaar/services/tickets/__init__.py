"""Ticket service."""
from .service import TicketService, generate_ticket_id, get_ticket_service
from .router import router

__all__ = ["TicketService", "generate_ticket_id", "get_ticket_service", "router"]
