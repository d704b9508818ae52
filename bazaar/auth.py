"""
JWT authentication and role checks.

Tokens are issued by the external auth service; this module only verifies
them (services) or decodes them without verification (gateway context).
"""
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from bazaar.config import get_settings
from bazaar.errors import (
    ERROR_FORBIDDEN,
    ERROR_INVALID_TOKEN,
    ERROR_NO_TOKEN,
)
from bazaar.logging import get_logger, sanitize_id_for_logging
from bazaar.models import UserRole

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "


class TokenPayload(BaseModel):
    """Claims carried by access tokens."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    email: str
    role: UserRole = UserRole.CUSTOMER
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def verify_access_token(token: str) -> TokenPayload:
    """Verify signature and expiry. Raises ValueError on any failure."""
    try:
        claims = jwt.decode(token, get_settings().jwt_secret, algorithms=[JWT_ALGORITHM])
        return TokenPayload.model_validate(claims)
    except (jwt.PyJWTError, ValueError) as e:
        raise ValueError(ERROR_INVALID_TOKEN) from e


def decode_token(token: str) -> Optional[TokenPayload]:
    """Decode claims without verifying the signature (gateway context only)."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
        return TokenPayload.model_validate(claims)
    except (jwt.PyJWTError, ValueError):
        return None


async def authenticate(authorization: str = Header(None, alias="Authorization")) -> TokenPayload:
    """FastAPI dependency: require a valid bearer token."""
    token = extract_bearer(authorization)
    if not token:
        raise HTTPException(status_code=401, detail=ERROR_NO_TOKEN)
    try:
        user = verify_access_token(token)
    except ValueError:
        logger.warning("Authentication failed - invalid token")
        raise HTTPException(status_code=401, detail=ERROR_INVALID_TOKEN)
    logger.debug(f"User authenticated: {sanitize_id_for_logging(user.user_id)}")
    return user


async def optional_auth(
    authorization: str = Header(None, alias="Authorization"),
) -> Optional[TokenPayload]:
    """FastAPI dependency: decode the bearer token when present and valid."""
    token = extract_bearer(authorization)
    if not token:
        return None
    try:
        return verify_access_token(token)
    except ValueError:
        logger.debug("Optional auth - token invalid, continuing without auth")
        return None


def require_role(*allowed: UserRole):
    """Build a dependency that only lets the given roles through."""

    async def _check(user: TokenPayload = Depends(authenticate)) -> TokenPayload:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail=ERROR_FORBIDDEN)
        return user

    return _check


require_admin = require_role(UserRole.ADMIN)
require_seller_or_admin = require_role(UserRole.SELLER, UserRole.ADMIN)


__all__ = [
    "BEARER_PREFIX",
    "TokenPayload",
    "UserRole",
    "authenticate",
    "decode_token",
    "extract_bearer",
    "optional_auth",
    "require_admin",
    "require_role",
    "require_seller_or_admin",
    "verify_access_token",
]
