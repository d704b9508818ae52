"""Supabase repositories, one per table."""
from .base import BaseRepository
from .product_repo import ProductRepository
from .category_repo import CategoryRepository
from .coupon_repo import CouponRepository
from .ticket_repo import TicketRepository
from .order_repo import OrderRepository

__all__ = [
    "BaseRepository",
    "ProductRepository",
    "CategoryRepository",
    "CouponRepository",
    "TicketRepository",
    "OrderRepository",
]
