"""Orders API Router"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from bazaar.auth import TokenPayload, authenticate, require_admin
from bazaar.config import Pagination
from bazaar.models import OrderCreate, OrderStatusUpdate, PaymentStatusUpdate
from bazaar.services.app import ok

from .service import OrderService, get_order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
async def list_orders(
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.DEFAULT_PAGE_SIZE, ge=1, le=Pagination.MAX_PAGE_SIZE),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    status: Optional[str] = Query(None),
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    """Admins see every order; anyone else only their own."""
    return ok(await service.list_orders(user, page, limit, customer_id=customer_id, status=status))


@router.get("/admin-stats")
async def admin_stats(
    admin: TokenPayload = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    return ok(await service.admin_stats())


@router.get("/customer/{customer_id}")
async def customer_orders(
    customer_id: str,
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.DEFAULT_PAGE_SIZE, ge=1, le=Pagination.MAX_PAGE_SIZE),
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    return ok(await service.customer_orders(customer_id, user, page, limit))


@router.get("/seller/{seller_id}")
async def seller_orders(
    seller_id: str,
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.DEFAULT_PAGE_SIZE, ge=1, le=Pagination.MAX_PAGE_SIZE),
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    return ok(await service.seller_orders(seller_id, user, page, limit))


@router.get("/seller-stats/{seller_id}")
async def seller_stats(
    seller_id: str,
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    return ok(await service.seller_stats(seller_id, user))


@router.get("/seller-earnings/{seller_id}")
async def seller_earnings(
    seller_id: str,
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    return ok(await service.seller_earnings(seller_id, user))


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    return ok(await service.get_order(order_id, user))


@router.post("", status_code=201)
async def create_order(
    payload: OrderCreate,
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    orders = await service.create_orders(payload, user)
    message = (
        f"{len(orders)} orders created successfully (split by seller)"
        if len(orders) > 1
        else "Order created successfully"
    )
    data = {
        "order": orders[0].to_api() if orders else None,
        "orders": [o.to_api() for o in orders],
        "orderCount": len(orders),
    }
    return ok(data, message)


@router.patch("/{order_id}/status")
async def update_status(
    order_id: str,
    payload: OrderStatusUpdate,
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    order = await service.update_status(order_id, payload, user)
    return ok(order.to_api(), "Order status updated successfully")


@router.patch("/{order_id}/payment")
async def update_payment(
    order_id: str,
    payload: PaymentStatusUpdate,
    admin: TokenPayload = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    order = await service.update_payment(order_id, payload)
    return ok(order.to_api(), "Payment status updated successfully")


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    user: TokenPayload = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    order = await service.cancel(order_id, user)
    return ok(order.to_api(), "Order cancelled successfully")
