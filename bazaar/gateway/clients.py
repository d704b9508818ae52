"""
Downstream REST clients.

One `httpx.AsyncClient` per service. GETs are retried on transport errors;
writes are sent once. Non-2xx responses become `GraphQLError` with a code
derived from the HTTP status.
"""
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from bazaar.auth import BEARER_PREFIX
from bazaar.config import Settings, get_settings
from bazaar.errors import ERROR_SERVICE_UNAVAILABLE
from bazaar.logging import get_logger, sanitize_string_for_logging

from .errors import DOWNSTREAM_ERROR, code_for_status, gateway_error

logger = get_logger(__name__)

SERVICES = ("auth", "product", "order", "category", "coupon", "ticket")


def _headers(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"{BEARER_PREFIX}{token}"} if token else {}


def _clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop None values; booleans go out as lowercase strings."""
    cleaned: Dict[str, Any] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        cleaned[key] = str(value).lower() if isinstance(value, bool) else value
    return cleaned


class ServiceClient:
    """JSON client for one downstream service."""

    def __init__(
        self,
        name: str,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = name
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get(self, path: str, params: Dict[str, Any], token: Optional[str]) -> httpx.Response:
        return await self._client.get(path, params=params, headers=_headers(token))

    async def get(
        self, path: str, params: Optional[Dict[str, Any]] = None, token: Optional[str] = None
    ) -> Dict[str, Any]:
        try:
            response = await self._get(path, _clean_params(params), token)
        except httpx.TransportError as e:
            raise self._unavailable(path, e) from e
        return self._handle(response)

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json, headers=_headers(token))
        except httpx.TransportError as e:
            raise self._unavailable(path, e) from e
        return self._handle(response)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None, token: Optional[str] = None):
        return await self.request("POST", path, json=json, token=token)

    async def put(self, path: str, json: Optional[Dict[str, Any]] = None, token: Optional[str] = None):
        return await self.request("PUT", path, json=json, token=token)

    async def patch(self, path: str, json: Optional[Dict[str, Any]] = None, token: Optional[str] = None):
        return await self.request("PATCH", path, json=json, token=token)

    async def delete(self, path: str, token: Optional[str] = None):
        return await self.request("DELETE", path, token=token)

    def _handle(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success:
            return body if isinstance(body, dict) else {"data": body}

        message = body.get("message") if isinstance(body, dict) else None
        message = message or f"{self.name} service returned {response.status_code}"
        logger.warning(
            f"{self.name} {response.request.method} "
            f"{sanitize_string_for_logging(response.request.url.path)} -> {response.status_code}"
        )
        raise gateway_error(message, code_for_status(response.status_code), status=response.status_code)

    def _unavailable(self, path: str, error: Exception):
        logger.error(f"{self.name} service unreachable ({sanitize_string_for_logging(path)}): {error}")
        return gateway_error(ERROR_SERVICE_UNAVAILABLE, DOWNSTREAM_ERROR, service=self.name)

    async def aclose(self) -> None:
        await self._client.aclose()


class ServiceClients:
    """All downstream clients, keyed by service name."""

    def __init__(self, clients: Dict[str, ServiceClient]):
        self._clients = clients

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ServiceClients":
        settings = settings or get_settings()
        return cls({
            name: ServiceClient(name, settings.service_urls[name], settings.request_timeout, transport)
            for name in SERVICES
        })

    def __getattr__(self, name: str) -> ServiceClient:
        try:
            return self._clients[name]
        except KeyError:
            raise AttributeError(name) from None

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.aclose()
