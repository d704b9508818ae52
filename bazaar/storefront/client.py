"""
Storefront GraphQL client.

Talks to the gateway over HTTP. GraphQL errors are raised as
`GatewayQueryError`; an UNAUTHENTICATED error drops the stored token so the
next request goes out anonymously.
"""
from typing import Any, Dict, List, Optional

import httpx

from bazaar.auth import BEARER_PREFIX
from bazaar.config import PORT_CONFIG
from bazaar.logging import get_logger

from .queries import (
    CANCEL_ORDER_MUTATION,
    CREATE_ORDER_MUTATION,
    GET_CATEGORIES_QUERY,
    GET_ORDER_QUERY,
    GET_ORDERS_QUERY,
    GET_PRODUCT_QUERY,
    GET_PRODUCTS_QUERY,
    VALIDATE_COUPON_QUERY,
)

logger = get_logger(__name__)

DEFAULT_GATEWAY_URL = f"http://localhost:{PORT_CONFIG['GRAPHQL_GATEWAY']}/graphql"
UNAUTHENTICATED = "UNAUTHENTICATED"


class GatewayQueryError(Exception):
    """GraphQL response carried errors."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        self.codes = [
            (e.get("extensions") or {}).get("code") for e in errors
        ]
        message = "; ".join(e.get("message", "GraphQL error") for e in errors)
        super().__init__(message)

    @property
    def is_unauthenticated(self) -> bool:
        return UNAUTHENTICATED in self.codes


class GatewayClient:
    def __init__(
        self,
        url: str = DEFAULT_GATEWAY_URL,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.token = token
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a document and return its ``data``."""
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"{BEARER_PREFIX}{self.token}"

        response = await self._client.post(
            self.url, json={"query": query, "variables": variables or {}}, headers=headers
        )
        response.raise_for_status()
        body = response.json()

        errors = body.get("errors")
        if errors:
            error = GatewayQueryError(errors)
            for e in errors:
                logger.error(f"[GraphQL error]: Message: {e.get('message')}, Path: {e.get('path')}")
            if error.is_unauthenticated:
                self.token = None
            raise error
        return body.get("data") or {}

    async def fetch_products(self, page: int, limit: int, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = await self.execute(GET_PRODUCTS_QUERY, {"page": page, "limit": limit, **(filters or {})})
        return data["products"]

    async def fetch_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        data = await self.execute(GET_PRODUCT_QUERY, {"id": product_id})
        return data.get("product")

    async def fetch_categories(self) -> List[Dict[str, Any]]:
        data = await self.execute(GET_CATEGORIES_QUERY)
        return data.get("categories") or []

    async def validate_coupon(self, code: str, order_total: float) -> Dict[str, Any]:
        data = await self.execute(VALIDATE_COUPON_QUERY, {"code": code, "orderTotal": order_total})
        return data["validateCoupon"]

    async def fetch_orders(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        data = await self.execute(GET_ORDERS_QUERY, {"page": page, "limit": limit})
        return data["orders"]

    async def fetch_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        data = await self.execute(GET_ORDER_QUERY, {"id": order_id})
        return data.get("order")

    async def create_order(self, order: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Place a checkout (``CreateOrderInput`` shape); returns one order per seller."""
        data = await self.execute(CREATE_ORDER_MUTATION, {"input": order})
        return data["createOrder"]["orders"]

    async def cancel_order(self, order_id: str) -> Dict[str, Any]:
        data = await self.execute(CANCEL_ORDER_MUTATION, {"id": order_id})
        return data["cancelOrder"]
