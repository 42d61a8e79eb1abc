import redis.asyncio as redis
from functools import lru_cache
from src.infra.config.settings import settings
from src.core.logger.logger import logger

@lru_cache()
def get_redis_pool():
    """Get Redis connection pool (cached)"""
    return redis.ConnectionPool.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        max_connections=settings.REDIS_MAX_CONNECTIONS
    )

async def get_redis() -> redis.Redis:
    """Get Redis client backed by the shared session pool"""
    try:
        pool = get_redis_pool()
        return redis.Redis(connection_pool=pool)
    except Exception as e:
        logger.error(f"Failed to create Redis client: {e}")
        raise

async def ping_redis() -> bool:
    """Round-trip to Redis, used by the health endpoint"""
    redis_client = await get_redis()
    return bool(await redis_client.ping())
