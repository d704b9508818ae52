"""Per-request GraphQL context."""
from dataclasses import dataclass
from typing import Optional

from strawberry.fastapi import BaseContext

from bazaar.auth import decode_token, extract_bearer
from bazaar.cache import CacheService
from bazaar.errors import ERROR_AUTH_REQUIRED

from .clients import ServiceClients
from .errors import UNAUTHENTICATED, gateway_error


@dataclass
class GatewayUser:
    id: str
    email: str
    role: str
    name: str


def user_from_token(token: Optional[str]) -> Optional[GatewayUser]:
    """Decode (without verifying) the caller; services do the verification."""
    if not token:
        return None
    payload = decode_token(token)
    if payload is None:
        return None
    return GatewayUser(
        id=payload.user_id,
        email=payload.email,
        role=payload.role.value,
        name=payload.display_name,
    )


class GatewayContext(BaseContext):
    def __init__(
        self,
        clients: ServiceClients,
        cache: CacheService,
        token: Optional[str] = None,
        user: Optional[GatewayUser] = None,
    ):
        super().__init__()
        self.clients = clients
        self.cache = cache
        self.token = token
        self.user = user

    @classmethod
    def from_authorization(
        cls, authorization: Optional[str], clients: ServiceClients, cache: CacheService
    ) -> "GatewayContext":
        token = extract_bearer(authorization)
        return cls(clients, cache, token=token, user=user_from_token(token))

    @property
    def is_anonymous(self) -> bool:
        return not self.token


def require_auth(context: GatewayContext) -> str:
    """Return the caller's token or raise UNAUTHENTICATED."""
    if not context.token:
        raise gateway_error(ERROR_AUTH_REQUIRED, UNAUTHENTICATED)
    return context.token
