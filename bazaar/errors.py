"""
Common Error Constants

Centralized error messages shared by the services and the gateway.
"""

# Auth errors
ERROR_AUTH_REQUIRED = "Authentication required"
ERROR_NO_TOKEN = "No token provided. Access denied."
ERROR_INVALID_TOKEN = "Invalid or expired token"
ERROR_FORBIDDEN = "Access denied. Insufficient permissions."
ERROR_OWNERSHIP = "Access denied. You can only access your own resources."

# Generic errors
ERROR_ROUTE_NOT_FOUND = "Route not found"
ERROR_VALIDATION_FAILED = "Validation failed"
ERROR_INTERNAL = "Internal server error"
ERROR_SERVICE_UNAVAILABLE = "Service temporarily unavailable"

# Product errors
ERROR_PRODUCT_NOT_FOUND = "Product not found"

# Category errors
ERROR_CATEGORY_NOT_FOUND = "Category not found"
ERROR_CATEGORY_EXISTS = "Category with this name already exists"

# Coupon errors
ERROR_INVALID_COUPON = "Invalid or expired coupon"
ERROR_COUPON_NOT_FOUND = "Coupon not found"
ERROR_COUPON_EXPIRED = "Coupon has expired"
ERROR_COUPON_LIMIT_REACHED = "Coupon usage limit reached"
ERROR_COUPON_BUSY = "Coupon is being redeemed concurrently, please retry"
ERROR_COUPON_EXISTS = "Coupon code already exists"
ERROR_COUPON_CODE_FORMAT = "Coupon code must be 6-20 uppercase letters or digits"
ERROR_COUPON_MIN_PURCHASE = "Minimum purchase of {amount} required for this coupon"

# Ticket errors
ERROR_TICKET_NOT_FOUND = "Ticket not found"
ERROR_TICKET_CLOSED = "Cannot comment on a closed ticket"

# Order errors
ERROR_ORDER_NOT_FOUND = "Order not found"
ERROR_ORDER_ALREADY_CANCELLED = "Order is already cancelled"
ERROR_ORDER_NOT_CANCELLABLE = "Cannot cancel order with status: {status}"
ERROR_UNKNOWN_SHIPPING_METHOD = "Unknown shipping method: {method}"


class NotFoundError(LookupError):
    """Entity does not exist (or is not visible to the caller)."""


class ValidationFailed(ValueError):
    """Input rejected by a domain rule."""


class ConflictError(ValueError):
    """Entity would violate a uniqueness rule."""


class ForbiddenError(PermissionError):
    """Caller is authenticated but may not touch the entity."""
