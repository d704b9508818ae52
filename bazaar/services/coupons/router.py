"""Coupons API Router"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from bazaar.auth import TokenPayload, authenticate, require_admin
from bazaar.config import Pagination
from bazaar.models import CouponCreate, CouponRedeemRequest, CouponUpdate, CouponValidateRequest
from bazaar.services.app import ok

from .service import CouponService, get_coupon_service

router = APIRouter(prefix="/api/coupons", tags=["coupons"])


@router.get("")
async def list_coupons(
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.DEFAULT_LIMIT, ge=1, le=Pagination.MAX_PAGE_SIZE),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = Query(None),
    admin: TokenPayload = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service),
):
    return ok(await service.list_coupons(page, limit, is_active, search))


@router.post("/validate")
async def validate_coupon(
    payload: CouponValidateRequest,
    service: CouponService = Depends(get_coupon_service),
):
    """Check a code against an order total. Invalid codes are a 200 with ``valid: false``."""
    result = await service.validate(payload.code, payload.order_total)
    return ok(result.to_api())


@router.post("/{code}/redeem")
async def redeem_coupon(
    code: str,
    payload: Optional[CouponRedeemRequest] = None,
    user: TokenPayload = Depends(authenticate),
    service: CouponService = Depends(get_coupon_service),
):
    """Count one use; an invalid, expired or exhausted code is a 400."""
    order_total = payload.order_total if payload else None
    coupon = await service.redeem(code, order_total)
    return ok(coupon.to_api(), "Coupon redeemed")


@router.get("/{coupon_id}")
async def get_coupon(
    coupon_id: str,
    admin: TokenPayload = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service),
):
    return ok((await service.get_coupon(coupon_id)).to_api())


@router.post("", status_code=201)
async def create_coupon(
    payload: CouponCreate,
    admin: TokenPayload = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service),
):
    coupon = await service.create_coupon(payload)
    return ok(coupon.to_api(), "Coupon created successfully")


@router.put("/{coupon_id}")
async def update_coupon(
    coupon_id: str,
    payload: CouponUpdate,
    admin: TokenPayload = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service),
):
    coupon = await service.update_coupon(coupon_id, payload)
    return ok(coupon.to_api(), "Coupon updated successfully")


@router.delete("/{coupon_id}")
async def delete_coupon(
    coupon_id: str,
    admin: TokenPayload = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service),
):
    await service.delete_coupon(coupon_id)
    return ok(message="Coupon deleted successfully")
