"""Order service."""
from .service import OrderService, generate_order_number, get_order_service, group_by_seller, seller_view
from .router import router

__all__ = ["OrderService", "generate_order_number", "get_order_service", "group_by_seller", "seller_view", "router"]
