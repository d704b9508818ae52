"""Admin dashboard aggregate (order + auth services)."""
import asyncio

import strawberry
from strawberry.types import Info

from bazaar.logging import get_logger

from ..context import GatewayContext
from ..types import DashboardStats

logger = get_logger(__name__)


def _empty_stats() -> DashboardStats:
    return DashboardStats(total_users=0, total_orders=0, total_revenue=0.0, pending_orders=0)


@strawberry.type
class DashboardQuery:
    @strawberry.field
    async def dashboard_stats(self, info: Info) -> DashboardStats:
        """
        Fan out to both services concurrently.

        A failing auth call only zeroes ``totalUsers``; a failing order call
        zeroes everything.
        """
        context: GatewayContext = info.context
        orders_res, users_res = await asyncio.gather(
            context.clients.order.get("/api/orders/admin-stats", token=context.token),
            context.clients.auth.get("/api/auth/stats", token=context.token),
            return_exceptions=True,
        )

        if isinstance(orders_res, Exception):
            logger.warning(f"Order stats unavailable: {orders_res}")
            return _empty_stats()

        total_users = 0
        if isinstance(users_res, Exception):
            logger.warning(f"User stats unavailable: {users_res}")
        else:
            total_users = (users_res.get("data") or {}).get("totalUsers") or 0

        stats = orders_res.get("data") or {}
        return DashboardStats(
            total_users=total_users,
            total_orders=stats.get("totalOrders") or 0,
            total_revenue=float(stats.get("totalRevenue") or 0),
            pending_orders=stats.get("pendingOrders") or 0,
        )
