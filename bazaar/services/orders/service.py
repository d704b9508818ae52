"""
Order service.

A checkout becomes one order per seller. Totals are computed here from the
item prices, the shipping method and the coupon; whatever totals a client
sends are ignored. Tax, shipping and discount are split across the seller
orders in proportion to their subtotals.
"""
import secrets
import string
import time
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, List, Optional

from bazaar.auth import TokenPayload
from bazaar.checkout import checkout_summary, split_summary
from bazaar.config import OrderConfig
from bazaar.db import get_supabase
from bazaar.errors import (
    ERROR_FORBIDDEN,
    ERROR_ORDER_ALREADY_CANCELLED,
    ERROR_ORDER_NOT_CANCELLABLE,
    ERROR_ORDER_NOT_FOUND,
    ERROR_OWNERSHIP,
    ERROR_UNKNOWN_SHIPPING_METHOD,
    ForbiddenError,
    NotFoundError,
    ValidationFailed,
)
from bazaar.logging import get_logger, sanitize_id_for_logging
from bazaar.models import (
    CANCELLABLE_STATUSES,
    Order,
    OrderCreate,
    OrderItem,
    OrderStatus,
    OrderStatusUpdate,
    Pagination,
    PaymentStatus,
    PaymentStatusUpdate,
    UserRole,
)
from bazaar.money import multiply, round_money, to_decimal, to_float
from bazaar.repositories import OrderRepository
from bazaar.services.coupons import CouponService, calculate_discount, get_coupon_service

logger = get_logger(__name__)

ORDER_PREFIX = "ORD"
_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase

PENDING_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)
PROCESSING_STATUSES = (OrderStatus.PROCESSING, OrderStatus.SHIPPED)


def generate_order_number(now_ms: Optional[int] = None) -> str:
    """``ORD-<epoch millis>-<4 random chars>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(4))
    return f"{ORDER_PREFIX}-{now_ms}-{suffix}"


def group_by_seller(items: List[OrderItem]) -> "OrderedDict[Optional[str], List[OrderItem]]":
    """Items grouped by ``seller_id`` in first-seen order."""
    groups: "OrderedDict[Optional[str], List[OrderItem]]" = OrderedDict()
    for item in items:
        groups.setdefault(item.seller_id, []).append(item)
    return groups


def _items_subtotal(items: List[OrderItem]) -> Decimal:
    return round_money(sum((multiply(i.price, i.quantity) for i in items), Decimal("0")))


def _seller_subtotal(order: Order, seller_id: str) -> Decimal:
    return _items_subtotal([i for i in order.items if i.seller_id == seller_id])


def _rate(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def seller_view(order: Order, seller_id: str) -> Dict[str, Any]:
    """An order as one seller sees it: only their items, plus their subtotal."""
    data = order.to_api()
    own = [i for i in order.items if i.seller_id == seller_id]
    data["items"] = [i.to_api() for i in own]
    data["sellerSubtotal"] = to_float(_items_subtotal(own))
    data["sellerItemCount"] = len(own)
    data["totalItemCount"] = len(order.items)
    data["isMultiSellerOrder"] = any(i.seller_id != seller_id for i in order.items)
    return data


def status_breakdown(statuses: List[OrderStatus]) -> Dict[str, int]:
    return {
        "pendingOrders": sum(1 for s in statuses if s in PENDING_STATUSES),
        "processingOrders": sum(1 for s in statuses if s in PROCESSING_STATUSES),
        "completedOrders": sum(1 for s in statuses if s == OrderStatus.DELIVERED),
        "cancelledOrders": sum(1 for s in statuses if s == OrderStatus.CANCELLED),
    }


class OrderService:
    def __init__(self, repo: OrderRepository, coupons: CouponService):
        self.repo = repo
        self.coupons = coupons

    # ==================== READ ====================

    async def list_orders(
        self,
        user: TokenPayload,
        page: int,
        limit: int,
        customer_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not user.is_admin:
            customer_id = user.user_id

        orders, total = await self.repo.list((page - 1) * limit, limit, customer_id=customer_id, status=status)
        return {
            "orders": [o.to_api() for o in orders],
            "pagination": Pagination.build(page, limit, total).to_api(),
        }

    async def customer_orders(self, customer_id: str, user: TokenPayload, page: int, limit: int) -> Dict[str, Any]:
        if not user.is_admin and customer_id != user.user_id:
            raise ForbiddenError(ERROR_OWNERSHIP)
        return await self.list_orders(user, page, limit, customer_id=customer_id)

    async def get_order(self, order_id: str, user: TokenPayload) -> Dict[str, Any]:
        order = await self._load(order_id)
        if user.is_admin or order.customer_id == user.user_id:
            return order.to_api()
        if self._sells_in(order, user.user_id):
            return seller_view(order, user.user_id)
        raise ForbiddenError(ERROR_OWNERSHIP)

    async def seller_orders(self, seller_id: str, user: TokenPayload, page: int, limit: int) -> Dict[str, Any]:
        self._check_seller(seller_id, user)
        orders, total = await self.repo.for_seller(seller_id, (page - 1) * limit, limit)
        return {
            "orders": [seller_view(o, seller_id) for o in orders],
            "pagination": Pagination.build(page, limit, total).to_api(),
        }

    # ==================== STATS ====================

    async def admin_stats(self) -> Dict[str, Any]:
        """Dashboard counters; revenue leaves cancelled orders out."""
        rows = await self.repo.status_totals()
        statuses = [OrderStatus(r["order_status"]) for r in rows]
        revenue = sum(
            (to_decimal(r.get("total")) for r, s in zip(rows, statuses) if s != OrderStatus.CANCELLED),
            Decimal("0"),
        )
        return {
            "totalOrders": len(rows),
            "totalRevenue": to_float(revenue),
            **status_breakdown(statuses),
        }

    async def seller_stats(self, seller_id: str, user: TokenPayload) -> Dict[str, Any]:
        self._check_seller(seller_id, user)
        orders, _ = await self.repo.for_seller(seller_id)
        statuses = [o.order_status for o in orders]
        counted = [o for o in orders if o.order_status != OrderStatus.CANCELLED]
        revenue = sum((_seller_subtotal(o, seller_id) for o in counted), Decimal("0"))
        breakdown = status_breakdown(statuses)
        completion = _rate(breakdown["completedOrders"], len(orders))
        return {
            "totalRevenue": to_float(revenue),
            "totalOrders": len(orders),
            **breakdown,
            "completionRate": round(completion, 1),
            "avgOrderValue": to_float(revenue / len(counted)) if counted else 0.0,
            "successRate": round(completion),
        }

    async def seller_earnings(self, seller_id: str, user: TokenPayload) -> Dict[str, Any]:
        """Revenue, platform commission and payout, in total and per month."""
        self._check_seller(seller_id, user)
        orders, _ = await self.repo.for_seller(seller_id)
        rate = to_decimal(OrderConfig.SELLER_COMMISSION_RATE)

        months: Dict[str, Dict[str, Any]] = {}
        revenue = Decimal("0")
        counted = 0
        for order in orders:
            if order.order_status == OrderStatus.CANCELLED:
                continue
            amount = _seller_subtotal(order, seller_id)
            revenue += amount
            counted += 1
            if order.created_at is None:
                continue
            key = order.created_at.strftime("%Y-%m")
            month = months.setdefault(
                key,
                {"period": order.created_at.strftime("%B %Y"), "revenue": Decimal("0"), "orders": 0},
            )
            month["revenue"] += amount
            month["orders"] += 1

        monthly = []
        for key in sorted(months, reverse=True):
            month = months[key]
            commission = round_money(month["revenue"] * rate)
            monthly.append(
                {
                    "period": month["period"],
                    "monthKey": key,
                    "revenue": to_float(month["revenue"]),
                    "orders": month["orders"],
                    "commission": to_float(commission),
                    "payout": to_float(month["revenue"] - commission),
                }
            )

        commission = round_money(revenue * rate)
        return {
            "summary": {
                "totalRevenue": to_float(revenue),
                "totalOrders": counted,
                "totalCommission": to_float(commission),
                "totalPayout": to_float(revenue - commission),
                "commissionRate": float(rate),
            },
            "monthlyEarnings": monthly,
        }

    # ==================== WRITE ====================

    async def create_orders(self, payload: OrderCreate, user: TokenPayload) -> List[Order]:
        """
        Place a checkout: one order per seller, coupon redeemed once.

        The coupon is redeemed (validated and counted) before any order row
        is written, so an exhausted code never produces orders.
        """
        if payload.shipping_method not in OrderConfig.SHIPPING_COST:
            raise ValidationFailed(ERROR_UNKNOWN_SHIPPING_METHOD.format(method=payload.shipping_method))

        customer_id = user.user_id
        if user.is_admin and payload.customer_id:
            customer_id = payload.customer_id

        subtotal = _items_subtotal(payload.items)
        discount = Decimal("0")
        coupon_code = None
        if payload.coupon_code:
            coupon = await self.coupons.redeem(payload.coupon_code, to_float(subtotal))
            discount = calculate_discount(coupon, to_float(subtotal))
            coupon_code = coupon.code

        summary = checkout_summary(subtotal, payload.shipping_method, discount)
        groups = group_by_seller(payload.items)
        shares = split_summary(summary, [_items_subtotal(items) for items in groups.values()])
        split = len(groups) > 1

        rows = []
        for (seller_id, items), share in zip(groups.items(), shares):
            notes = payload.notes
            if split:
                marker = f"Split order for seller: {seller_id or 'unassigned'}"
                notes = f"{notes} ({marker})" if notes else marker
            rows.append(
                {
                    "order_number": generate_order_number(),
                    "customer_id": customer_id,
                    "customer_email": payload.customer_email,
                    "seller_id": seller_id,
                    "items": [i.to_row() for i in items],
                    "subtotal": to_float(share.subtotal),
                    "discount": to_float(share.discount),
                    "tax": to_float(share.tax),
                    "shipping": to_float(share.shipping),
                    "total": to_float(share.total),
                    "coupon_code": coupon_code,
                    "order_status": OrderStatus.PENDING.value,
                    "payment_status": PaymentStatus.PENDING.value,
                    "payment_method": payload.payment_method,
                    "shipping_method": payload.shipping_method,
                    "shipping_address": payload.shipping_address.to_row(),
                    "notes": notes,
                }
            )

        orders = await self.repo.create_many(rows)
        logger.info(
            f"Checkout for {sanitize_id_for_logging(customer_id)}: "
            f"{len(orders)} order(s), total {to_float(summary.total)}"
        )
        return orders

    async def update_status(self, order_id: str, payload: OrderStatusUpdate, user: TokenPayload) -> Order:
        """Admins move any order; a seller moves only orders they sell in."""
        order = await self._load(order_id)
        if not user.is_admin and not (user.role == UserRole.SELLER and self._sells_in(order, user.user_id)):
            raise ForbiddenError(ERROR_FORBIDDEN)

        updated = await self.repo.update(order_id, {"order_status": payload.order_status.value})
        if not updated:
            raise NotFoundError(ERROR_ORDER_NOT_FOUND)
        logger.info(f"Order {updated.order_number} -> {payload.order_status.value}")
        return updated

    async def update_payment(self, order_id: str, payload: PaymentStatusUpdate) -> Order:
        updated = await self.repo.update(order_id, {"payment_status": payload.payment_status.value})
        if not updated:
            raise NotFoundError(ERROR_ORDER_NOT_FOUND)
        logger.info(f"Order {updated.order_number} payment -> {payload.payment_status.value}")
        return updated

    async def cancel(self, order_id: str, user: TokenPayload) -> Order:
        """Only pending or confirmed orders can be cancelled, by their customer or an admin."""
        order = await self._load(order_id)
        if not user.is_admin and order.customer_id != user.user_id:
            raise ForbiddenError(ERROR_OWNERSHIP)
        if order.order_status == OrderStatus.CANCELLED:
            raise ValidationFailed(ERROR_ORDER_ALREADY_CANCELLED)
        if order.order_status not in CANCELLABLE_STATUSES:
            raise ValidationFailed(ERROR_ORDER_NOT_CANCELLABLE.format(status=order.order_status.value))

        updated = await self.repo.update(order_id, {"order_status": OrderStatus.CANCELLED.value})
        if not updated:
            raise NotFoundError(ERROR_ORDER_NOT_FOUND)
        logger.info(f"Order cancelled: {updated.order_number}")
        return updated

    # ==================== HELPERS ====================

    async def _load(self, order_id: str) -> Order:
        order = await self.repo.get_by_id(order_id)
        if not order:
            raise NotFoundError(ERROR_ORDER_NOT_FOUND)
        return order

    @staticmethod
    def _sells_in(order: Order, seller_id: str) -> bool:
        return order.seller_id == seller_id or any(i.seller_id == seller_id for i in order.items)

    @staticmethod
    def _check_seller(seller_id: str, user: TokenPayload) -> None:
        if not user.is_admin and seller_id != user.user_id:
            raise ForbiddenError(ERROR_OWNERSHIP)


_order_service: Optional[OrderService] = None


def get_order_service() -> OrderService:
    """Get OrderService singleton (FastAPI dependency)."""
    global _order_service
    if _order_service is None:
        _order_service = OrderService(OrderRepository(get_supabase()), get_coupon_service())
    return _order_service
