"""Redis 客户端封装。

Redis 承载播放列表缓存、Catalog 快照、探测游标与任务锁，
连接延迟建立；Celery 任务中每次 asyncio.run() 都应使用新的 RedisClient 并在结束时 close()。
"""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from typing import TYPE_CHECKING, Any

import redis.asyncio as aioredis
from loguru import logger
from redis.exceptions import RedisError

if TYPE_CHECKING:
    from redis.asyncio import Redis

from src.core.config import settings
from src.core.infrastructure.health import ComponentHealth, HealthStatus
from src.core.infrastructure.redis.keys import RedisKeys


class RedisUnavailableError(RuntimeError):
    """Redis 不可用（连接失败/超时等）。"""


# 存储实现需要转换为 StoreError 的异常
REDIS_STORE_ERRORS = (RedisError, RedisUnavailableError, OSError)

# 只删除自己持有的锁
_RELEASE_LOCK_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class RedisClient:
    """Redis 客户端封装类。"""

    def __init__(self, url: str | None = None, timeout: float | None = None):
        self._url = url or settings.REDIS_URL
        self._timeout = timeout or settings.REDIS_CLIENT_TIMEOUT_SEC
        self._client: Redis | None = None
        self._lock_tokens: dict[str, str] = {}

    @property
    def client(self) -> Redis:
        if self._client is None:
            self._client = aioredis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=self._timeout,
                socket_connect_timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except REDIS_STORE_ERRORS as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def ensure_available(self, timeout: float | None = None) -> None:
        """Ping 一次，不可用时抛出 RedisUnavailableError。"""
        try:
            ok = await asyncio.wait_for(self.client.ping(), timeout=timeout or self._timeout)
        except TimeoutError as e:
            raise RedisUnavailableError("Redis ping timeout") from e
        except (RedisError, OSError) as e:
            raise RedisUnavailableError(f"Redis ping failed: {e}") from e
        if not ok:
            raise RedisUnavailableError("Redis ping returned falsy result")

    async def health_check(self) -> ComponentHealth:
        start_time = time.perf_counter()
        try:
            info = await self.client.info("server")
        except REDIS_STORE_ERRORS as e:
            return ComponentHealth(status=HealthStatus.ERROR, error=str(e))
        return ComponentHealth(
            status=HealthStatus.OK,
            version=info.get("redis_version"),
            latency_ms=int((time.perf_counter() - start_time) * 1000),
        )

    # ============ 字符串 / JSON ============

    async def get(self, key: str) -> str | None:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ex: int | None = None, nx: bool = False) -> bool:
        return bool(await self.client.set(key, value, ex=ex, nx=nx))

    async def get_json(self, key: str) -> Any | None:
        """获取 JSON 值；内容不是合法 JSON 时抛出 json.JSONDecodeError。"""
        value = await self.get(key)
        if value is None:
            return None
        return json.loads(value)

    async def set_json(self, key: str, value: Any, ex: int | None = None) -> bool:
        return await self.set(key, json.dumps(value, ensure_ascii=False), ex=ex)

    async def set_many_json(self, values: dict[str, Any]) -> None:
        """在同一事务中写入多个 JSON 值（MULTI/EXEC）。

        读者要么看到全部旧值，要么看到全部新值。
        """
        async with self.client.pipeline(transaction=True) as pipe:
            for key, value in values.items():
                pipe.set(key, json.dumps(value, ensure_ascii=False))
            await pipe.execute()

    # ============ 锁 ============

    async def acquire_lock(self, resource: str, ttl: int = 60) -> bool:
        """SET NX EX 获取锁；token 记录在本实例上，用于安全释放。"""
        token = uuid.uuid4().hex
        acquired = await self.set(RedisKeys.lock(resource), token, ex=ttl, nx=True)
        if acquired:
            self._lock_tokens[resource] = token
        return acquired

    async def release_lock(self, resource: str) -> bool:
        """释放本实例持有的锁；锁已过期并被他人持有时不做任何事。"""
        token = self._lock_tokens.pop(resource, None)
        if token is None:
            return False
        deleted = await self.client.eval(
            _RELEASE_LOCK_SCRIPT, 1, RedisKeys.lock(resource), token
        )
        return bool(deleted)


# 全局 Redis 客户端实例（API 进程）
redis_client = RedisClient()


def get_redis_client() -> RedisClient:
    """FastAPI 依赖。"""
    return redis_client
