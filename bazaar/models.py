"""Domain models - Pydantic models for all entities.

Database rows use snake_case column names; the REST wire format is camelCase.
Every model accepts both and dumps camelCase with ``by_alias=True``.
"""
import math
import re
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from bazaar.errors import ERROR_COUPON_CODE_FORMAT
from bazaar.money import multiply, to_float

MAX_PRICE = 999999.99
COUPON_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6,20}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class CamelModel(BaseModel):
    """Base model: camelCase aliases, unknown columns ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_row(self, exclude_unset: bool = False) -> dict:
        """Snake_case dict for the database."""
        return self.model_dump(mode="json", exclude_unset=exclude_unset)


class UserRole(str, Enum):
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(page=page, limit=limit, total=total, pages=pages)


# ==================== PRODUCTS ====================

class Product(CamelModel):
    """Catalog product."""
    id: str
    name: str
    description: str = ""
    price: float
    category: Optional[str] = None
    seller_id: Optional[str] = None
    stock: int = 0
    image_url: Optional[str] = None
    images: List[str] = []
    tags: List[str] = []
    rating: float = 0
    review_count: int = 0
    featured: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("images", "tags", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []


class ProductCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    price: float = Field(ge=0, le=MAX_PRICE)
    category: Optional[str] = None
    seller_id: Optional[str] = None
    stock: int = Field(default=0, ge=0)
    image_url: Optional[str] = None
    images: List[str] = []
    tags: List[str] = []
    featured: bool = False


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, le=MAX_PRICE)
    category: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None
    is_active: Optional[bool] = None


# ==================== CATEGORIES ====================

def slugify(value: str) -> str:
    """Lowercase, hyphen-separated slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower())
    return slug.strip("-")


class Category(CamelModel):
    id: str
    name: str
    slug: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[str] = None
    is_active: bool = True
    product_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[str] = None
    is_active: bool = True


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[str] = None
    is_active: Optional[bool] = None


# ==================== COUPONS ====================

class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def _normalize_code(v):
    if isinstance(v, str):
        v = v.strip().upper()
        if not COUPON_CODE_PATTERN.match(v):
            raise ValueError(ERROR_COUPON_CODE_FORMAT)
    return v


CouponCode = Annotated[str, BeforeValidator(_normalize_code)]


class Coupon(CamelModel):
    id: str
    code: str
    description: Optional[str] = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: float
    min_purchase: float = 0
    max_discount: Optional[float] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CouponCreate(CamelModel):
    code: CouponCode
    description: Optional[str] = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: float = Field(gt=0, le=MAX_PRICE)
    min_purchase: float = Field(default=0, ge=0)
    max_discount: Optional[float] = Field(default=None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_ranges(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.valid_from and self.valid_to and self.valid_to < self.valid_from:
            raise ValueError("validTo must be after validFrom")
        return self


class CouponUpdate(CamelModel):
    code: Optional[CouponCode] = None
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(default=None, gt=0, le=MAX_PRICE)
    min_purchase: Optional[float] = Field(default=None, ge=0)
    max_discount: Optional[float] = Field(default=None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    is_active: Optional[bool] = None


class CouponValidateRequest(CamelModel):
    code: str
    order_total: float = Field(ge=0)


class CouponRedeemRequest(CamelModel):
    order_total: Optional[float] = Field(default=None, ge=0)


class CouponValidation(CamelModel):
    """Result of checking a code against an order total."""
    valid: bool
    code: Optional[str] = None
    discount: float = 0
    final_total: float = 0
    discount_type: Optional[DiscountType] = None
    message: Optional[str] = None


# ==================== TICKETS ====================

class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketCategory(str, Enum):
    TECHNICAL = "technical"
    BILLING = "billing"
    GENERAL = "general"
    FEATURE = "feature"
    ORDER = "order"
    ACCOUNT = "account"


class TicketComment(CamelModel):
    user_id: Optional[str] = None
    user_name: str
    user_role: str
    message: str
    is_internal: bool = False
    created_at: Optional[datetime] = None


class Ticket(CamelModel):
    id: str
    ticket_id: str
    subject: str
    description: str
    category: TicketCategory = TicketCategory.GENERAL
    priority: TicketPriority = TicketPriority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN
    customer_name: str
    customer_email: str
    customer_id: Optional[str] = None
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    resolution: Optional[str] = None
    attachments: List[str] = []
    comments: List[TicketComment] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    @field_validator("attachments", "comments", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []


class TicketCreate(CamelModel):
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: TicketCategory = TicketCategory.GENERAL
    priority: TicketPriority = TicketPriority.MEDIUM
    customer_name: str
    customer_email: str
    customer_id: Optional[str] = None
    attachments: List[str] = []

    @field_validator("customer_email")
    @classmethod
    def check_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v.lower()


class TicketCommentCreate(CamelModel):
    message: str = Field(min_length=1)
    is_internal: bool = False


class TicketStatusUpdate(CamelModel):
    status: TicketStatus
    resolution: Optional[str] = None


class TicketAssign(CamelModel):
    assigned_to: str
    assigned_to_name: Optional[str] = None


# ==================== ORDERS ====================

class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# Statuses a customer may still cancel from
CANCELLABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)


class ShippingAddress(CamelModel):
    name: Optional[str] = None
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip: str = Field(min_length=1)
    country: str = Field(min_length=1)
    phone: Optional[str] = None


class OrderItem(CamelModel):
    product_id: str
    name: str
    price: float = Field(ge=0, le=MAX_PRICE)
    quantity: int = Field(ge=1)
    seller_id: Optional[str] = None
    image_url: Optional[str] = None
    subtotal: float = 0

    @model_validator(mode="after")
    def compute_subtotal(self):
        # never trust a client-supplied line total
        self.subtotal = to_float(multiply(self.price, self.quantity))
        return self


class Order(CamelModel):
    id: str
    order_number: str
    customer_id: str
    customer_email: str
    seller_id: Optional[str] = None
    items: List[OrderItem] = []
    subtotal: float = 0
    discount: float = 0
    tax: float = 0
    shipping: float = 0
    total: float = 0
    coupon_code: Optional[str] = None
    order_status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str
    shipping_method: str = "standard"
    shipping_address: Optional[ShippingAddress] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("items", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []


class OrderCreate(CamelModel):
    """Checkout request. Totals are computed server-side from the items."""
    customer_email: str
    customer_id: Optional[str] = None
    items: List[OrderItem] = Field(min_length=1)
    payment_method: str = Field(min_length=1)
    shipping_method: str = "standard"
    shipping_address: ShippingAddress
    coupon_code: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("customer_email")
    @classmethod
    def check_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v.lower()


class OrderStatusUpdate(CamelModel):
    order_status: OrderStatus


class PaymentStatusUpdate(CamelModel):
    payment_status: PaymentStatus
