"""
Storefront cart, wishlist and recently-viewed list, persisted in Redis.

One JSON document per user under ``cart:{user_id}`` with a 24-hour TTL that
is refreshed on every write.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional

from bazaar.checkout import CheckoutSummary, checkout_summary
from bazaar.config import OrderConfig
from bazaar.db import TTL, RedisKeys, get_redis
from bazaar.logging import get_logger, sanitize_id_for_logging
from bazaar.money import multiply, round_money, to_decimal

logger = get_logger(__name__)

MAX_RECENTLY_VIEWED = 12


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CartItem:
    product_id: str
    name: str
    price: Decimal
    quantity: int
    image: Optional[str] = None
    seller_id: Optional[str] = None
    added_at: str = ""

    def __post_init__(self):
        if not self.added_at:
            self.added_at = _now()
        self.price = to_decimal(self.price)

    @property
    def total_price(self) -> Decimal:
        return round_money(multiply(self.price, self.quantity))

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "image": self.image,
            "seller_id": self.seller_id,
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            price=to_decimal(data["price"]),
            quantity=int(data["quantity"]),
            image=data.get("image"),
            seller_id=data.get("seller_id"),
            added_at=data.get("added_at", ""),
        )


@dataclass
class SavedProduct:
    """Wishlist or recently-viewed entry."""
    product_id: str
    name: str
    price: Decimal
    image: Optional[str] = None
    saved_at: str = ""

    def __post_init__(self):
        if not self.saved_at:
            self.saved_at = _now()
        self.price = to_decimal(self.price)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "image": self.image,
            "saved_at": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedProduct":
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            price=to_decimal(data["price"]),
            image=data.get("image"),
            saved_at=data.get("saved_at", ""),
        )


@dataclass
class CartState:
    user_id: str
    items: List[CartItem] = field(default_factory=list)
    wishlist: List[SavedProduct] = field(default_factory=list)
    recently_viewed: List[SavedProduct] = field(default_factory=list)
    updated_at: str = ""

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        return round_money(sum((item.total_price for item in self.items), Decimal("0")))

    def order_items(self) -> List[dict]:
        """Cart lines as ``OrderItemInput`` variables for ``createOrder``."""
        return [
            {
                "productId": item.product_id,
                "name": item.name,
                "price": float(item.price),
                "quantity": item.quantity,
                "sellerId": item.seller_id,
                "imageUrl": item.image,
            }
            for item in self.items
        ]

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "items": [i.to_dict() for i in self.items],
            "wishlist": [w.to_dict() for w in self.wishlist],
            "recently_viewed": [r.to_dict() for r in self.recently_viewed],
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartState":
        return cls(
            user_id=data["user_id"],
            items=[CartItem.from_dict(i) for i in data.get("items", [])],
            wishlist=[SavedProduct.from_dict(w) for w in data.get("wishlist", [])],
            recently_viewed=[SavedProduct.from_dict(r) for r in data.get("recently_viewed", [])],
            updated_at=data.get("updated_at", ""),
        )


class CartStore:
    """
    Per-user cart persisted in Redis.

    Every mutating call loads the stored state, applies the change and
    writes it back, returning the new state.
    """

    def __init__(self, user_id: str, redis_client: Any = None):
        self.user_id = user_id
        self._redis = redis_client

    @property
    def redis(self):
        """Redis client (lazy initialization)."""
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    @property
    def key(self) -> str:
        return RedisKeys.cart_key(self.user_id)

    async def load(self) -> CartState:
        data = await self.redis.get(self.key)
        if not data:
            return CartState(user_id=self.user_id)
        try:
            return CartState.from_dict(json.loads(data))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            # Corrupted data - clear it and start over
            logger.warning(f"Corrupted cart data for user {sanitize_id_for_logging(self.user_id)}: {e}")
            await self.redis.delete(self.key)
            return CartState(user_id=self.user_id)

    async def save(self, state: CartState) -> CartState:
        state.updated_at = _now()
        await self.redis.set(self.key, json.dumps(state.to_dict()), ex=TTL.CART)
        return state

    # ==================== CART ====================

    async def add_item(
        self,
        product_id: str,
        name: str,
        price: Any,
        quantity: int = 1,
        image: Optional[str] = None,
        seller_id: Optional[str] = None,
    ) -> CartState:
        """Add a product; adding one already in the cart merges quantities."""
        if not product_id:
            raise ValueError("product_id must be a non-empty string")
        if not isinstance(quantity, int) or quantity < 1:
            raise ValueError("quantity must be a positive integer")
        if to_decimal(price) < 0:
            raise ValueError("price must be a non-negative number")

        state = await self.load()
        if state.item_count + quantity > OrderConfig.MAX_ORDER_ITEMS:
            raise ValueError(f"Cart cannot hold more than {OrderConfig.MAX_ORDER_ITEMS} items")

        existing = next((i for i in state.items if i.product_id == product_id), None)
        if existing:
            existing.quantity += quantity
            existing.price = to_decimal(price)
        else:
            state.items.append(
                CartItem(
                    product_id=product_id,
                    name=name,
                    price=price,
                    quantity=quantity,
                    image=image,
                    seller_id=seller_id,
                )
            )
        return await self.save(state)

    async def update_quantity(self, product_id: str, quantity: int) -> CartState:
        """Set a line's quantity; zero or less removes the line."""
        if not isinstance(quantity, int):
            raise ValueError("quantity must be an integer")

        state = await self.load()
        if quantity <= 0:
            state.items = [i for i in state.items if i.product_id != product_id]
            return await self.save(state)

        item = next((i for i in state.items if i.product_id == product_id), None)
        if item is None:
            return state
        if state.item_count - item.quantity + quantity > OrderConfig.MAX_ORDER_ITEMS:
            raise ValueError(f"Cart cannot hold more than {OrderConfig.MAX_ORDER_ITEMS} items")
        item.quantity = quantity
        return await self.save(state)

    async def remove_item(self, product_id: str) -> CartState:
        return await self.update_quantity(product_id, 0)

    async def clear(self) -> CartState:
        """Empty the cart; wishlist and history are kept."""
        state = await self.load()
        state.items = []
        return await self.save(state)

    async def checkout_summary(self, shipping: str = "standard", coupon_discount: Any = 0) -> CheckoutSummary:
        state = await self.load()
        return checkout_summary(state.subtotal, shipping, coupon_discount)

    # ==================== WISHLIST ====================

    async def add_to_wishlist(
        self, product_id: str, name: str, price: Any, image: Optional[str] = None
    ) -> CartState:
        state = await self.load()
        if any(w.product_id == product_id for w in state.wishlist):
            return state
        state.wishlist.append(SavedProduct(product_id=product_id, name=name, price=price, image=image))
        return await self.save(state)

    async def remove_from_wishlist(self, product_id: str) -> CartState:
        state = await self.load()
        state.wishlist = [w for w in state.wishlist if w.product_id != product_id]
        return await self.save(state)

    async def in_wishlist(self, product_id: str) -> bool:
        state = await self.load()
        return any(w.product_id == product_id for w in state.wishlist)

    # ==================== RECENTLY VIEWED ====================

    async def add_recently_viewed(
        self, product_id: str, name: str, price: Any, image: Optional[str] = None
    ) -> CartState:
        """Most recent first, no duplicates, capped at MAX_RECENTLY_VIEWED."""
        state = await self.load()
        rest = [r for r in state.recently_viewed if r.product_id != product_id]
        entry = SavedProduct(product_id=product_id, name=name, price=price, image=image)
        state.recently_viewed = [entry, *rest][:MAX_RECENTLY_VIEWED]
        return await self.save(state)

    async def clear_recently_viewed(self) -> CartState:
        state = await self.load()
        state.recently_viewed = []
        return await self.save(state)
