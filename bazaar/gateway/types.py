"""
GraphQL object and input types.

Downstream services speak camelCase JSON; each object type is built from
that JSON through the matching pydantic model so defaults and coercion stay
in one place. Timestamps are exposed as ISO-8601 strings.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

import strawberry
from pydantic.alias_generators import to_camel

from bazaar import models


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


@strawberry.type
class Pagination:
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def from_data(cls, data: Optional[Dict[str, Any]], page: int = 1, limit: int = 10) -> "Pagination":
        if not data:
            return cls(page=page, limit=limit, total=0, pages=0)
        p = models.Pagination.model_validate(data)
        return cls(page=p.page, limit=p.limit, total=p.total, pages=p.pages)


# ==================== PRODUCTS ====================

@strawberry.type
class Product:
    id: strawberry.ID
    name: str
    description: str
    price: float
    category: Optional[str]
    seller_id: Optional[str]
    stock: int
    image_url: Optional[str]
    images: List[str]
    tags: List[str]
    rating: float
    review_count: int
    featured: bool
    is_active: bool
    created_at: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "Product":
        p = models.Product.model_validate(data)
        return cls(
            id=strawberry.ID(p.id),
            name=p.name,
            description=p.description,
            price=p.price,
            category=p.category,
            seller_id=p.seller_id,
            stock=p.stock,
            image_url=p.image_url,
            images=p.images,
            tags=p.tags,
            rating=p.rating,
            review_count=p.review_count,
            featured=p.featured,
            is_active=p.is_active,
            created_at=_iso(p.created_at),
            updated_at=_iso(p.updated_at),
        )


@strawberry.type
class ProductConnection:
    products: List[Product]
    pagination: Pagination
    total: int
    page: int
    total_pages: int

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "ProductConnection":
        pagination = Pagination.from_data(data.get("pagination"))
        return cls(
            products=[Product.from_data(p) for p in data.get("products") or []],
            pagination=pagination,
            total=pagination.total,
            page=pagination.page,
            total_pages=pagination.pages,
        )


@strawberry.input
class CreateProductInput:
    name: str
    price: float
    description: str = ""
    category: Optional[str] = None
    seller_id: Optional[str] = None
    stock: int = 0
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    featured: bool = False


@strawberry.input
class UpdateProductInput:
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    stock: Optional[int] = None
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None
    is_active: Optional[bool] = None


# ==================== CATEGORIES ====================

@strawberry.type
class Category:
    id: strawberry.ID
    name: str
    slug: str
    description: Optional[str]
    image_url: Optional[str]
    parent_id: Optional[str]
    is_active: bool
    product_count: int
    created_at: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "Category":
        c = models.Category.model_validate(data)
        return cls(
            id=strawberry.ID(c.id),
            name=c.name,
            slug=c.slug,
            description=c.description,
            image_url=c.image_url,
            parent_id=c.parent_id,
            is_active=c.is_active,
            product_count=c.product_count,
            created_at=_iso(c.created_at),
            updated_at=_iso(c.updated_at),
        )


@strawberry.input
class CreateCategoryInput:
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[str] = None
    is_active: bool = True


@strawberry.input
class UpdateCategoryInput:
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[str] = None
    is_active: Optional[bool] = None


# ==================== COUPONS ====================

@strawberry.type
class Coupon:
    id: strawberry.ID
    code: str
    description: Optional[str]
    discount_type: str
    discount_value: float
    min_purchase: float
    max_discount: Optional[float]
    usage_limit: Optional[int]
    usage_count: int
    valid_from: Optional[str]
    valid_to: Optional[str]
    is_active: bool
    created_at: Optional[str]

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "Coupon":
        c = models.Coupon.model_validate(data)
        return cls(
            id=strawberry.ID(c.id),
            code=c.code,
            description=c.description,
            discount_type=c.discount_type.value,
            discount_value=c.discount_value,
            min_purchase=c.min_purchase,
            max_discount=c.max_discount,
            usage_limit=c.usage_limit,
            usage_count=c.usage_count,
            valid_from=_iso(c.valid_from),
            valid_to=_iso(c.valid_to),
            is_active=c.is_active,
            created_at=_iso(c.created_at),
        )


@strawberry.type
class CouponConnection:
    coupons: List[Coupon]
    pagination: Pagination


@strawberry.type
class CouponValidation:
    valid: bool
    code: Optional[str]
    discount: float
    final_total: float
    discount_type: Optional[str]
    message: Optional[str]

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "CouponValidation":
        v = models.CouponValidation.model_validate(data)
        return cls(
            valid=v.valid,
            code=v.code,
            discount=v.discount,
            final_total=v.final_total,
            discount_type=v.discount_type.value if v.discount_type else None,
            message=v.message,
        )


@strawberry.input
class CreateCouponInput:
    code: str
    discount_value: float
    discount_type: str = "percentage"
    description: Optional[str] = None
    min_purchase: float = 0
    max_discount: Optional[float] = None
    usage_limit: Optional[int] = None
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None
    is_active: bool = True


@strawberry.input
class UpdateCouponInput:
    code: Optional[str] = None
    description: Optional[str] = None
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    min_purchase: Optional[float] = None
    max_discount: Optional[float] = None
    usage_limit: Optional[int] = None
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None
    is_active: Optional[bool] = None


# ==================== TICKETS ====================

@strawberry.enum
class TicketStatus(Enum):
    # GraphQL enum names cannot contain "-"
    open = "open"
    in_progress = "in-progress"
    pending = "pending"
    resolved = "resolved"
    closed = "closed"


@strawberry.type
class TicketComment:
    user_id: Optional[str]
    user_name: str
    user_role: str
    message: str
    is_internal: bool
    created_at: Optional[str]


@strawberry.type
class Ticket:
    id: strawberry.ID
    ticket_id: str
    subject: str
    description: str
    category: str
    priority: str
    status: TicketStatus
    customer_name: str
    customer_email: str
    customer_id: Optional[str]
    assigned_to: Optional[str]
    assigned_to_name: Optional[str]
    resolution: Optional[str]
    attachments: List[str]
    comments: List[TicketComment]
    created_at: Optional[str]
    updated_at: Optional[str]
    resolved_at: Optional[str]
    closed_at: Optional[str]

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "Ticket":
        t = models.Ticket.model_validate(data)
        return cls(
            id=strawberry.ID(t.id),
            ticket_id=t.ticket_id,
            subject=t.subject,
            description=t.description,
            category=t.category.value,
            priority=t.priority.value,
            status=TicketStatus(t.status.value),
            customer_name=t.customer_name,
            customer_email=t.customer_email,
            customer_id=t.customer_id,
            assigned_to=t.assigned_to,
            assigned_to_name=t.assigned_to_name,
            resolution=t.resolution,
            attachments=t.attachments,
            comments=[
                TicketComment(
                    user_id=c.user_id,
                    user_name=c.user_name,
                    user_role=c.user_role,
                    message=c.message,
                    is_internal=c.is_internal,
                    created_at=_iso(c.created_at),
                )
                for c in t.comments
            ],
            created_at=_iso(t.created_at),
            updated_at=_iso(t.updated_at),
            resolved_at=_iso(t.resolved_at),
            closed_at=_iso(t.closed_at),
        )


@strawberry.type
class TicketConnection:
    tickets: List[Ticket]
    pagination: Pagination


@strawberry.input
class CreateTicketInput:
    subject: str
    description: str
    customer_name: str
    customer_email: str
    category: str = "general"
    priority: Optional[str] = None
    customer_id: Optional[str] = None
    attachments: Optional[List[str]] = None


@strawberry.input
class AddTicketCommentInput:
    ticket_id: strawberry.ID
    message: str
    is_internal: bool = False


# ==================== ORDERS ====================

@strawberry.enum
class OrderStatus(Enum):
    pending = "pending"
    confirmed = "confirmed"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


@strawberry.enum
class PaymentStatus(Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


@strawberry.type
class OrderItem:
    product_id: str
    name: str
    price: float
    quantity: int
    subtotal: float
    seller_id: Optional[str]
    image_url: Optional[str]


@strawberry.type
class ShippingAddress:
    name: Optional[str]
    street: str
    city: str
    state: str
    zip: str
    country: str
    phone: Optional[str]


@strawberry.type
class Order:
    id: strawberry.ID
    order_number: str
    customer_id: str
    customer_email: str
    seller_id: Optional[str]
    items: List[OrderItem]
    subtotal: float
    discount: float
    tax: float
    shipping: float
    total: float
    coupon_code: Optional[str]
    order_status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    shipping_method: str
    shipping_address: Optional[ShippingAddress]
    notes: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "Order":
        o = models.Order.model_validate(data)
        address = o.shipping_address
        return cls(
            id=strawberry.ID(o.id),
            order_number=o.order_number,
            customer_id=o.customer_id,
            customer_email=o.customer_email,
            seller_id=o.seller_id,
            items=[
                OrderItem(
                    product_id=i.product_id,
                    name=i.name,
                    price=i.price,
                    quantity=i.quantity,
                    subtotal=i.subtotal,
                    seller_id=i.seller_id,
                    image_url=i.image_url,
                )
                for i in o.items
            ],
            subtotal=o.subtotal,
            discount=o.discount,
            tax=o.tax,
            shipping=o.shipping,
            total=o.total,
            coupon_code=o.coupon_code,
            order_status=OrderStatus(o.order_status.value),
            payment_status=PaymentStatus(o.payment_status.value),
            payment_method=o.payment_method,
            shipping_method=o.shipping_method,
            shipping_address=ShippingAddress(**address.model_dump()) if address else None,
            notes=o.notes,
            created_at=_iso(o.created_at),
            updated_at=_iso(o.updated_at),
        )


@strawberry.type
class OrderConnection:
    orders: List[Order]
    pagination: Pagination


@strawberry.type
class CheckoutResult:
    """Every order a checkout produced (one per seller)."""
    orders: List[Order]
    order_count: int


@strawberry.input
class OrderItemInput:
    product_id: str
    name: str
    price: float
    quantity: int
    seller_id: Optional[str] = None
    image_url: Optional[str] = None


@strawberry.input
class ShippingAddressInput:
    street: str
    city: str
    state: str
    zip: str
    country: str
    name: Optional[str] = None
    phone: Optional[str] = None


@strawberry.input
class CreateOrderInput:
    customer_email: str
    items: List[OrderItemInput]
    payment_method: str
    shipping_address: ShippingAddressInput
    shipping_method: str = "standard"
    coupon_code: Optional[str] = None
    notes: Optional[str] = None
    customer_id: Optional[str] = None


def order_input_to_payload(value: CreateOrderInput) -> Dict[str, Any]:
    payload = input_to_payload(value)
    payload["items"] = [input_to_payload(i) for i in value.items]
    payload["shippingAddress"] = input_to_payload(value.shipping_address)
    return payload


# ==================== DASHBOARD ====================

@strawberry.type
class DashboardStats:
    total_users: int
    total_orders: int
    total_revenue: float
    pending_orders: int


def input_to_payload(value: Any) -> Dict[str, Any]:
    """Input object -> camelCase JSON body, unset (None) fields dropped."""
    return {to_camel(k): v for k, v in vars(value).items() if v is not None}
