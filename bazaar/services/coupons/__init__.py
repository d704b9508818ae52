"""Coupon service."""
from .service import CouponService, calculate_discount, check_coupon, get_coupon_service
from .router import router

__all__ = ["CouponService", "calculate_discount", "check_coupon", "get_coupon_service", "router"]
