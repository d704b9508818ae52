"""
Runtime configuration.

All settings come from environment variables (a local `.env` file is loaded
first when present). Use `get_settings()`; call `get_settings.cache_clear()`
after changing the environment in tests.
"""
import os
from dataclasses import dataclass, field
from functools import cache
from typing import Dict, Tuple

from dotenv import load_dotenv

load_dotenv()

# Default ports: auth-3011, category-3012, coupon-3013, product-3014,
# order-3015, ticket-3016, graphql-4000
PORT_CONFIG: Dict[str, int] = {
    "AUTH_SERVICE": 3011,
    "CATEGORY_SERVICE": 3012,
    "COUPON_SERVICE": 3013,
    "PRODUCT_SERVICE": 3014,
    "ORDER_SERVICE": 3015,
    "TICKET_SERVICE": 3016,
    "GRAPHQL_GATEWAY": 4000,
}

DEFAULT_CORS_ORIGINS: Tuple[str, ...] = (
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:3002",
    "http://localhost:3003",
)


class Pagination:
    """Pagination defaults."""

    DEFAULT_PAGE = 1
    DEFAULT_LIMIT = 10
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100
    MIN_PAGE_SIZE = 1
    DEFAULT_SORT_BY = "createdAt"


class OrderConfig:
    """Checkout constants."""

    TAX_RATE = "0.10"
    SHIPPING_COST = {
        "standard": 50,
        "express": 150,
        "overnight": 300,
    }
    MAX_ORDER_ITEMS = 1000
    SELLER_COMMISSION_RATE = "0.10"


DEV_JWT_SECRET = "dev-only-jwt-secret-change-me-32b"


class ConfigError(RuntimeError):
    """Required configuration is missing."""


def _service_url(env_name: str, port_key: str) -> str:
    return os.environ.get(env_name) or f"http://localhost:{PORT_CONFIG[port_key]}"


def _origins() -> Tuple[str, ...]:
    raw = os.environ.get("ALLOWED_ORIGINS", "")
    origins = tuple(o.strip() for o in raw.split(",") if o.strip())
    return origins or DEFAULT_CORS_ORIGINS


def _jwt_secret(environment: str) -> str:
    secret = os.environ.get("JWT_SECRET", "")
    if secret:
        return secret
    if environment != "development":
        raise ConfigError("JWT_SECRET must be set outside development")
    return DEV_JWT_SECRET


@dataclass(frozen=True)
class Settings:
    """Process-wide settings snapshot."""

    environment: str = "development"
    jwt_secret: str = DEV_JWT_SECRET
    allowed_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    request_timeout: float = 30.0

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    redis_url: str = ""
    redis_token: str = ""

    # service name (auth, product, ...) -> base URL
    service_urls: Dict[str, str] = field(default_factory=dict)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def redis_configured(self) -> bool:
        return bool(self.redis_url and self.redis_token)


@cache
def get_settings() -> Settings:
    """
    Build settings from the current environment (cached).

    Raises ConfigError when JWT_SECRET is missing outside development.
    """
    environment = os.environ.get("ENVIRONMENT", "development")
    return Settings(
        environment=environment,
        jwt_secret=_jwt_secret(environment),
        allowed_origins=_origins(),
        request_timeout=float(os.environ.get("REQUEST_TIMEOUT", "30")),
        supabase_url=os.environ.get("SUPABASE_URL", ""),
        supabase_service_role_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY", ""),
        redis_url=os.environ.get("UPSTASH_REDIS_REST_URL", ""),
        redis_token=os.environ.get("UPSTASH_REDIS_REST_TOKEN", ""),
        service_urls={
            "auth": _service_url("AUTH_SERVICE_URL", "AUTH_SERVICE"),
            "product": _service_url("PRODUCT_SERVICE_URL", "PRODUCT_SERVICE"),
            "order": _service_url("ORDER_SERVICE_URL", "ORDER_SERVICE"),
            "category": _service_url("CATEGORY_SERVICE_URL", "CATEGORY_SERVICE"),
            "coupon": _service_url("COUPON_SERVICE_URL", "COUPON_SERVICE"),
            "ticket": _service_url("TICKET_SERVICE_URL", "TICKET_SERVICE"),
        },
    )
