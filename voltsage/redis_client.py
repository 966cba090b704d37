import json
import logging
from typing import Any, Optional
from redis.asyncio import Redis
from .core.config import settings

logger = logging.getLogger(__name__)

redis_pool: Optional[Redis] = None

async def init_redis_pool():
    """
    Initialize the Redis connection.
    - host/port/password come from settings
    - a failed ping leaves the pool unset so callers fall back to memory
    """
    global redis_pool
    try:
        redis_pool = Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=0,
            password=settings.REDIS_PASSWORD or None,
            decode_responses=True,
        )
        await redis_pool.ping()
        logger.info(f"Redis connected ({settings.REDIS_HOST}:{settings.REDIS_PORT})")
    except Exception as e:
        logger.error(f"Redis connection failed ({settings.REDIS_HOST}:{settings.REDIS_PORT}): {e}")
        redis_pool = None

async def close_redis_pool():
    """
    Close the Redis connection
    """
    global redis_pool
    if redis_pool:
        await redis_pool.aclose()
        redis_pool = None

async def get_redis_client() -> Optional[Redis]:
    """
    Current Redis client, None when not connected
    """
    return redis_pool

async def get_cache(key: str, client: Optional[Redis] = None) -> Any:
    """
    Read a JSON value
    """
    current_client = client or redis_pool
    if current_client is None:
        return None
    data = await current_client.get(key)
    return json.loads(data) if data else None

async def set_cache(
        key: str,
        value: Any,
        expire: Optional[int] = None,
        client: Optional[Redis] = None
):
    """
    Store a JSON value; expire=None keeps it until deleted
    """
    current_client = client or redis_pool
    if current_client is None:
        return
    await current_client.set(key, json.dumps(value, default=str), ex=expire)
