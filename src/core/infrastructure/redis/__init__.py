"""Redis 客户端封装。"""

from src.core.infrastructure.redis.client import (
    REDIS_STORE_ERRORS,
    RedisClient,
    RedisUnavailableError,
    get_redis_client,
    redis_client,
)
from src.core.infrastructure.redis.keys import RedisKeys

__all__ = [
    "REDIS_STORE_ERRORS",
    "RedisClient",
    "RedisKeys",
    "RedisUnavailableError",
    "get_redis_client",
    "redis_client",
]
