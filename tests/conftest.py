"""Pytest configuration and fixtures"""
import fnmatch
import os
import time

import jwt
import pytest
from unittest.mock import Mock

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-bytes-for-hs256")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.pop("UPSTASH_REDIS_REST_URL", None)
os.environ.pop("UPSTASH_REDIS_REST_TOKEN", None)

from bazaar.cache import CacheService, set_cache  # noqa: E402
from bazaar.config import get_settings  # noqa: E402


class FakeRedis:
    """In-memory stand-in for the async Upstash client (get/set/delete/scan)."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return "OK"

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    async def scan(self, cursor, match=None, count=None):
        keys = [k for k in self.store if match is None or fnmatch.fnmatchcase(k, match)]
        return 0, keys


class BrokenRedis:
    """Every call fails like an unreachable Redis."""

    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis down")

    async def delete(self, *keys):
        raise ConnectionError("redis down")

    async def scan(self, cursor, match=None, count=None):
        raise ConnectionError("redis down")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Fresh settings and an in-memory cache for every test."""
    get_settings.cache_clear()
    set_cache(CacheService())
    yield
    set_cache(None)
    get_settings.cache_clear()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broken_redis():
    return BrokenRedis()


@pytest.fixture
def memory_cache():
    return CacheService()


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client"""
    client = Mock()

    # Mock table operations
    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.insert.return_value = table_mock
    table_mock.update.return_value = table_mock
    table_mock.delete.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.or_.return_value = table_mock
    table_mock.limit.return_value = table_mock
    table_mock.order.return_value = table_mock
    table_mock.range.return_value = table_mock
    table_mock.gte.return_value = table_mock
    table_mock.lte.return_value = table_mock
    table_mock.ilike.return_value = table_mock
    table_mock.contains.return_value = table_mock
    table_mock.execute.return_value = Mock(data=[], count=0)

    client.table.return_value = table_mock

    return client


@pytest.fixture
def make_token():
    """Factory for signed access tokens."""

    def _make(user_id="user-123", role="customer", email="user@example.com", name="Test User", expires_in=3600):
        claims = {
            "userId": user_id,
            "email": email,
            "role": role,
            "name": name,
            "exp": int(time.time()) + expires_in,
        }
        return jwt.encode(claims, get_settings().jwt_secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_header(make_token):
    """Factory for Authorization headers."""

    def _header(**kwargs):
        return {"Authorization": f"Bearer {make_token(**kwargs)}"}

    return _header


@pytest.fixture
def sample_product():
    """Sample product row (snake_case, as stored)"""
    return {
        "id": "prod-123",
        "name": "Wireless Headphones",
        "description": "Noise cancelling over-ear headphones",
        "price": 199.99,
        "category": "Electronics",
        "seller_id": "seller-1",
        "stock": 25,
        "image_url": "https://cdn.example.com/headphones.jpg",
        "images": [],
        "tags": ["audio", "wireless"],
        "rating": 4.5,
        "review_count": 120,
        "featured": False,
        "is_active": True,
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-02T00:00:00+00:00",
    }


@pytest.fixture
def sample_category():
    """Sample category row"""
    return {
        "id": "6f1c2f62-2d1e-4a57-9d43-0f6a3c0b8a11",
        "name": "Electronics",
        "slug": "electronics",
        "description": "Gadgets and devices",
        "image_url": None,
        "parent_id": None,
        "is_active": True,
        "created_at": "2025-01-01T00:00:00+00:00",
    }


@pytest.fixture
def sample_coupon():
    """Sample coupon row"""
    return {
        "id": "coupon-1",
        "code": "SAVE10NOW",
        "description": "10% off",
        "discount_type": "percentage",
        "discount_value": 10,
        "min_purchase": 50,
        "max_discount": 30,
        "usage_limit": 100,
        "usage_count": 5,
        "valid_from": "2025-01-01T00:00:00+00:00",
        "valid_to": "2099-01-01T00:00:00+00:00",
        "is_active": True,
    }


@pytest.fixture
def sample_order():
    """Sample single-seller order row"""
    return {
        "id": "order-1",
        "order_number": "ORD-1736935200000-AB12",
        "customer_id": "user-123",
        "customer_email": "jane@example.com",
        "seller_id": "seller-1",
        "items": [
            {"product_id": "prod-1", "name": "Desk Lamp", "price": 10, "quantity": 2, "seller_id": "seller-1"},
        ],
        "subtotal": 20,
        "discount": 0,
        "tax": 2,
        "shipping": 50,
        "total": 72,
        "order_status": "pending",
        "payment_status": "pending",
        "payment_method": "card",
        "shipping_method": "standard",
        "shipping_address": {
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip": "62701",
            "country": "US",
        },
        "created_at": "2025-01-15T10:00:00+00:00",
    }


@pytest.fixture
def sample_ticket():
    """Sample ticket row with one public and one internal comment"""
    return {
        "id": "ticket-1",
        "ticket_id": "TKT-LZ1ABC-7K2Q",
        "subject": "Order not delivered",
        "description": "My order has not arrived yet",
        "category": "order",
        "priority": "high",
        "status": "open",
        "customer_name": "Jane Doe",
        "customer_email": "jane@example.com",
        "customer_id": "user-123",
        "attachments": [],
        "comments": [
            {
                "user_id": "user-123",
                "user_name": "Jane Doe",
                "user_role": "customer",
                "message": "Any update?",
                "is_internal": False,
                "created_at": "2025-01-03T00:00:00+00:00",
            },
            {
                "user_id": "admin-1",
                "user_name": "Support",
                "user_role": "admin",
                "message": "Carrier lost the parcel",
                "is_internal": True,
                "created_at": "2025-01-03T01:00:00+00:00",
            },
        ],
        "created_at": "2025-01-02T00:00:00+00:00",
    }
