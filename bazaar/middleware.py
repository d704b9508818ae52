"""
HTTP middleware shared by the services and the gateway.

- Security headers (CSP, HSTS, frame and content-type protections)
- Request timing log
"""
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from bazaar.logging import get_logger, sanitize_string_for_logging

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    The CSP allows the GraphiQL bundle served from unpkg/jsdelivr so the
    gateway's in-browser explorer keeps working.
    """

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)

        csp = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline' https://unpkg.com https://cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline' https://unpkg.com https://cdn.jsdelivr.net; "
            "img-src 'self' data: https:; "
            "connect-src 'self'; "
            "object-src 'none'; "
            "base-uri 'self'; "
            "frame-ancestors 'none';"
        )
        response.headers["Content-Security-Policy"] = csp

        # 1 year
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if "X-Powered-By" in response.headers:
            del response.headers["X-Powered-By"]

        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request at DEBUG."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Response-Time"] = f"{elapsed_ms:.1f}ms"
        logger.debug(
            f"{request.method} {sanitize_string_for_logging(request.url.path)} "
            f"-> {response.status_code} ({elapsed_ms:.1f}ms)"
        )
        return response
