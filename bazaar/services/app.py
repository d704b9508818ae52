"""
Service application shell.

Every microservice is a FastAPI app built by `create_service_app`, so they all
share CORS, security headers, the health endpoint and the JSON envelope
``{success, message?, data?}`` for errors.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bazaar import __version__
from bazaar.config import get_settings
from bazaar.errors import (
    ERROR_INTERNAL,
    ERROR_ROUTE_NOT_FOUND,
    ERROR_VALIDATION_FAILED,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailed,
)
from bazaar.logging import get_logger, sanitize_string_for_logging
from bazaar.middleware import RequestTimingMiddleware, SecurityHeadersMiddleware

logger = get_logger(__name__)

# Starlette's detail for unmatched routes
_ROUTER_NOT_FOUND = "Not Found"


def ok(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    """Success envelope."""
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def fail(message: str, status_code: int, **extra: Any) -> JSONResponse:
    """Error envelope as a response."""
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def create_service_app(name: str, routers: Iterable[Any], title: Optional[str] = None) -> FastAPI:
    """Build a service app with the shared middleware, handlers and /health."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{name} starting (env={get_settings().environment})")
        yield
        logger.info(f"{name} shutting down")

    settings = get_settings()
    app = FastAPI(
        title=title or name,
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestTimingMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == _ROUTER_NOT_FOUND:
            return fail(ERROR_ROUTE_NOT_FOUND, 404, path=request.url.path)
        return fail(str(exc.detail), exc.status_code)

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return fail(str(exc), 404)

    @app.exception_handler(ForbiddenError)
    async def forbidden(request: Request, exc: ForbiddenError):
        return fail(str(exc), 403)

    @app.exception_handler(ConflictError)
    async def conflict(request: Request, exc: ConflictError):
        return fail(str(exc), 409)

    @app.exception_handler(ValidationFailed)
    async def rejected(request: Request, exc: ValidationFailed):
        return fail(str(exc), 400)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in e.get("loc", ())[1:]), "message": e.get("msg")}
            for e in exc.errors()
        ]
        return fail(ERROR_VALIDATION_FAILED, 400, errors=errors)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {sanitize_string_for_logging(request.url.path)}",
            exc_info=exc,
        )
        message = str(exc) if settings.is_development else ERROR_INTERNAL
        return fail(message or ERROR_INTERNAL, 500)

    @app.get("/health")
    async def health_check():
        return {
            "success": True,
            "message": f"{name} is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    for router in routers:
        app.include_router(router)

    return app
