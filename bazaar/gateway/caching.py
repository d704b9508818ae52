"""
Gateway response cache.

Keys are ``gql:{field}:{json of non-null args, sorted}``. Only anonymous
requests read or write the cache, so per-user views never leak.
"""
import json
from typing import Any, Awaitable, Callable, Dict, Iterable

from bazaar.cache import CacheKeys, CacheService
from bazaar.logging import get_logger

from .context import GatewayContext

logger = get_logger(__name__)

PRODUCT_PATTERNS = (
    f"{CacheKeys.GATEWAY}products*",
    f"{CacheKeys.GATEWAY}productsBySeller*",
    f"{CacheKeys.GATEWAY}product:*",
)
CATEGORY_PATTERNS = (f"{CacheKeys.GATEWAY}categor*",)


def gql_cache_key(field: str, args: Dict[str, Any]) -> str:
    filtered = {k: v for k, v in args.items() if v is not None}
    return f"{CacheKeys.GATEWAY}{field}:{json.dumps(filtered, sort_keys=True, default=str)}"


async def cached(
    context: GatewayContext,
    field: str,
    args: Dict[str, Any],
    ttl: int,
    fetch: Callable[[], Awaitable[Any]],
    cacheable: bool = True,
) -> Any:
    """Cache-aside around ``fetch`` for anonymous callers."""
    use_cache = cacheable and context.is_anonymous
    key = gql_cache_key(field, args)
    if use_cache:
        hit = await context.cache.get(key)
        if hit is not None:
            logger.debug(f"Gateway cache hit: {field}")
            return hit

    data = await fetch()
    if use_cache and data is not None:
        await context.cache.set(key, data, ttl)
    return data


async def invalidate(cache: CacheService, patterns: Iterable[str]) -> None:
    for pattern in patterns:
        await cache.delete_pattern(pattern)
