"""GraphQL gateway over the REST services."""
from .app import create_gateway_app
from .clients import ServiceClient, ServiceClients
from .context import GatewayContext, GatewayUser, require_auth
from .schema import schema

__all__ = [
    "GatewayContext",
    "GatewayUser",
    "ServiceClient",
    "ServiceClients",
    "create_gateway_app",
    "require_auth",
    "schema",
]
