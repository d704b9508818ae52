"""
GraphQL gateway application.

Mounts the schema at /graphql and exposes / and /health. Downstream clients
are created per app and closed on shutdown.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from strawberry.fastapi import GraphQLRouter

from bazaar import __version__
from bazaar.cache import CacheService, get_cache
from bazaar.config import get_settings
from bazaar.logging import get_logger
from bazaar.middleware import RequestTimingMiddleware, SecurityHeadersMiddleware

from .clients import ServiceClients
from .context import GatewayContext
from .schema import schema

logger = get_logger(__name__)


def create_gateway_app(
    clients: Optional[ServiceClients] = None,
    cache: Optional[CacheService] = None,
) -> FastAPI:
    settings = get_settings()
    clients = clients or ServiceClients.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"GraphQL gateway starting (env={settings.environment})")
        yield
        await clients.aclose()
        logger.info("GraphQL gateway stopped")

    async def get_context(
        authorization: Optional[str] = Header(None, alias="Authorization"),
    ) -> GatewayContext:
        return GatewayContext.from_authorization(authorization, clients, cache or get_cache())

    app = FastAPI(title="Bazaar GraphQL Gateway", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestTimingMiddleware)

    graphql_app = GraphQLRouter(schema, context_getter=get_context, graphiql=settings.is_development)
    app.include_router(graphql_app, prefix="/graphql", include_in_schema=False)

    @app.get("/")
    async def root():
        return {
            "success": True,
            "message": "GraphQL Gateway API",
            "graphqlEndpoint": "/graphql",
            "healthEndpoint": "/health",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health")
    async def health_check():
        return {
            "success": True,
            "message": "GraphQL Gateway is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app
