"""
Coupon service.

Validation order for a code against an order total:
1. unknown or inactive code
2. outside the validFrom..validTo window
3. usage limit reached
4. order total below the minimum purchase
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt

from bazaar.db import get_supabase
from bazaar.errors import (
    ERROR_COUPON_BUSY,
    ERROR_COUPON_EXISTS,
    ERROR_COUPON_EXPIRED,
    ERROR_COUPON_LIMIT_REACHED,
    ERROR_COUPON_MIN_PURCHASE,
    ERROR_COUPON_NOT_FOUND,
    ERROR_INVALID_COUPON,
    ConflictError,
    NotFoundError,
    ValidationFailed,
)
from bazaar.logging import get_logger, sanitize_string_for_logging
from bazaar.models import (
    Coupon,
    CouponCreate,
    CouponUpdate,
    CouponValidation,
    DiscountType,
    Pagination,
)
from bazaar.money import percent, round_money, to_decimal, to_float
from bazaar.repositories import CouponRepository

logger = get_logger(__name__)

REDEEM_ATTEMPTS = 3


class _UsageRaced(Exception):
    """Another redemption changed usage_count between read and write."""


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def calculate_discount(coupon: Coupon, order_total: float) -> Decimal:
    """Discount for an order total, capped and rounded to cents."""
    total = to_decimal(order_total)
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = percent(total, coupon.discount_value)
        if coupon.max_discount is not None:
            discount = min(discount, to_decimal(coupon.max_discount))
    else:
        discount = to_decimal(coupon.discount_value)
    return round_money(min(discount, total))


def check_coupon(coupon: Optional[Coupon], order_total: float, now: Optional[datetime] = None) -> CouponValidation:
    """Apply the validation rules; never raises."""
    if coupon is None or not coupon.is_active:
        return CouponValidation(valid=False, message=ERROR_INVALID_COUPON)

    now = now or datetime.now(timezone.utc)
    if coupon.valid_from and now < _aware(coupon.valid_from):
        return CouponValidation(valid=False, code=coupon.code, message=ERROR_COUPON_EXPIRED)
    if coupon.valid_to and now > _aware(coupon.valid_to):
        return CouponValidation(valid=False, code=coupon.code, message=ERROR_COUPON_EXPIRED)

    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        return CouponValidation(valid=False, code=coupon.code, message=ERROR_COUPON_LIMIT_REACHED)

    if to_decimal(order_total) < to_decimal(coupon.min_purchase):
        return CouponValidation(
            valid=False,
            code=coupon.code,
            message=ERROR_COUPON_MIN_PURCHASE.format(amount=to_float(coupon.min_purchase)),
        )

    discount = calculate_discount(coupon, order_total)
    return CouponValidation(
        valid=True,
        code=coupon.code,
        discount=float(discount),
        final_total=to_float(to_decimal(order_total) - discount),
        discount_type=coupon.discount_type,
        message="Coupon applied successfully",
    )


class CouponService:
    def __init__(self, repo: CouponRepository):
        self.repo = repo

    async def list_coupons(
        self,
        page: int,
        limit: int,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        coupons, total = await self.repo.list((page - 1) * limit, limit, is_active, search)
        return {
            "coupons": [c.to_api() for c in coupons],
            "pagination": Pagination.build(page, limit, total).to_api(),
        }

    async def get_coupon(self, coupon_id: str) -> Coupon:
        coupon = await self.repo.get_by_id(coupon_id)
        if not coupon:
            raise NotFoundError(ERROR_COUPON_NOT_FOUND)
        return coupon

    async def create_coupon(self, payload: CouponCreate) -> Coupon:
        if await self.repo.get_by_code(payload.code):
            raise ConflictError(ERROR_COUPON_EXISTS)
        coupon = await self.repo.create(payload.to_row())
        logger.info(f"Coupon created: {coupon.code}")
        return coupon

    async def update_coupon(self, coupon_id: str, payload: CouponUpdate) -> Coupon:
        changes = payload.to_row(exclude_unset=True)
        if changes.get("code"):
            existing = await self.repo.get_by_code(changes["code"])
            if existing and existing.id != coupon_id:
                raise ConflictError(ERROR_COUPON_EXISTS)

        coupon = await self.repo.update(coupon_id, changes)
        if not coupon:
            raise NotFoundError(ERROR_COUPON_NOT_FOUND)
        return coupon

    async def delete_coupon(self, coupon_id: str) -> None:
        if not await self.repo.delete(coupon_id):
            raise NotFoundError(ERROR_COUPON_NOT_FOUND)

    async def validate(self, code: str, order_total: float) -> CouponValidation:
        coupon = await self.repo.get_by_code(code.strip())
        result = check_coupon(coupon, order_total)
        if not result.valid:
            logger.debug(
                f"Coupon rejected: {sanitize_string_for_logging(code, 20)} ({result.message})"
            )
        return result

    async def redeem(self, code: str, order_total: Optional[float] = None) -> Coupon:
        """
        Count one use of a code.

        The code must pass validation first (against ``order_total`` when
        given). The increment is a compare-and-set on ``usage_count``; a lost
        race re-reads and re-validates, so the usage limit always holds.
        """
        try:
            return await self._redeem_once(code.strip(), order_total)
        except _UsageRaced:
            logger.warning(f"Coupon redemption kept racing: {sanitize_string_for_logging(code, 20)}")
            raise ConflictError(ERROR_COUPON_BUSY) from None

    @retry(
        stop=stop_after_attempt(REDEEM_ATTEMPTS),
        retry=retry_if_exception_type(_UsageRaced),
        reraise=True,
    )
    async def _redeem_once(self, code: str, order_total: Optional[float]) -> Coupon:
        coupon = await self.repo.get_by_code(code)
        if not coupon:
            raise NotFoundError(ERROR_COUPON_NOT_FOUND)

        # without a total only the minimum-purchase rule is skipped
        total = order_total if order_total is not None else coupon.min_purchase
        result = check_coupon(coupon, total)
        if not result.valid:
            raise ValidationFailed(result.message)

        updated = await self.repo.increment_usage(coupon.id, coupon.usage_count)
        if updated is None:
            raise _UsageRaced()
        logger.info(f"Used coupon {coupon.code}, new count: {updated.usage_count}")
        return updated


_coupon_service: Optional[CouponService] = None


def get_coupon_service() -> CouponService:
    """Get CouponService singleton (FastAPI dependency)."""
    global _coupon_service
    if _coupon_service is None:
        _coupon_service = CouponService(CouponRepository(get_supabase()))
    return _coupon_service
