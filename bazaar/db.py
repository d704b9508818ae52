"""
Database Module - Supabase and Redis Clients

Provides singleton instances of:
- Supabase client for PostgreSQL operations (services' repositories)
- Upstash Redis client for the response cache and persisted carts
"""

from typing import Optional

from supabase import create_client, Client
from upstash_redis.asyncio import Redis as AsyncRedis

from bazaar.config import get_settings

# Singleton instances
_supabase_client: Optional[Client] = None
_redis_client: Optional[AsyncRedis] = None


def get_supabase() -> Client:
    """
    Get Supabase client (singleton).

    Repositories run its blocking `.execute()` calls in a worker thread.
    """
    global _supabase_client

    if _supabase_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _supabase_client = create_client(settings.supabase_url, settings.supabase_service_role_key)

    return _supabase_client


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses the standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        settings = get_settings()
        if not settings.redis_configured:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=settings.redis_url, token=settings.redis_token)

    return _redis_client


class RedisKeys:
    """Redis key prefixes for non-cache data."""

    CART = "cart:"  # cart:{user_id}

    @staticmethod
    def cart_key(user_id: str) -> str:
        return f"{RedisKeys.CART}{user_id}"


class TTL:
    """Time-to-live constants for Redis keys (seconds)."""

    CART = 86400  # 24 hours
