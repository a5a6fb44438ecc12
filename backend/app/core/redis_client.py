"""
Redis client initialization.

Redis holds the revoked-token list used by logout.
"""

import redis.asyncio as redis
from backend.app.core.config import settings


redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    Usable as a FastAPI dependency.
    """
    return redis_client
