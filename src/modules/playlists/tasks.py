"""播放列表 Celery 任务。

包含：
- 定时刷新 Catalog 并发布快照
- 刷新成功后触发一轮健康探测
"""

import asyncio
from typing import Any

from celery import shared_task
from kombu.exceptions import OperationalError
from loguru import logger

from src.core.config import settings
from src.core.infrastructure.celery.queues import Queues
from src.core.infrastructure.celery.retry import DEFAULT_RETRYABLE_EXCEPTIONS
from src.core.infrastructure.logging import get_business_logger

REFRESH_LOCK_RESOURCE = "catalog_refresh"


@shared_task(
    name="src.modules.playlists.tasks.refresh_catalog",
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=DEFAULT_RETRYABLE_EXCEPTIONS,
    retry_backoff=True,
    retry_backoff_max=600,
    queue=Queues.INGEST,
)
def refresh_catalog(_self: object) -> dict[str, Any]:
    """刷新 Catalog。

    由 Celery Beat 按 CATALOG_REFRESH_INTERVAL_SEC 调用，也可手动触发。
    """
    return asyncio.run(_refresh_catalog_async())


async def _refresh_catalog_async() -> dict[str, Any]:
    """异步版本的刷新逻辑。"""
    from src.core.infrastructure.database.session import get_async_session
    from src.core.infrastructure.redis import REDIS_STORE_ERRORS, RedisClient
    from src.modules.playlists.infrastructure.dependencies import (
        build_catalog_refresh_service,
    )
    from src.modules.playlists.infrastructure.repositories import (
        RedisCatalogSnapshotStore,
    )

    business_log = get_business_logger()

    # 分布式锁防止刷新重叠；Redis 不可用时降级为直接执行
    redis_client = RedisClient()
    lock_acquired = False
    redis_available = True

    try:
        try:
            await redis_client.ensure_available()
            lock_acquired = await redis_client.acquire_lock(
                REFRESH_LOCK_RESOURCE,
                ttl=settings.CATALOG_REFRESH_LOCK_TTL_SEC,
            )
        except REDIS_STORE_ERRORS as e:
            logger.warning(f"Failed to acquire catalog refresh lock: {e}")
            redis_available = False
            lock_acquired = True  # 降级时假设获取成功

        if not lock_acquired:
            logger.info("Skipping catalog refresh: another task is already running")
            business_log.info("catalog_refresh_skipped", reason="lock_held")
            return {"skipped": True}

        async with get_async_session() as session:
            service = build_catalog_refresh_service(session, redis_client)
            report = await service.refresh_with_report()

        # StoreError 会被重试
        await RedisCatalogSnapshotStore(redis_client).publish(
            report.catalog, list(report.probe_candidates)
        )

        try:
            from src.modules.channels.tasks import probe_channel_health

            probe_channel_health.delay()
        except OperationalError as e:
            logger.warning(f"Failed to enqueue channel probe after refresh: {e}")

        return {
            "skipped": False,
            "origin": report.origin.value,
            "channels": len(report.catalog.all_channels),
            "categories": len(report.catalog.categories),
            "sources_ok": report.sources_ok,
            "sources_failed": report.sources_failed,
            "filtered_offline": report.filtered_offline,
        }

    finally:
        if redis_available and lock_acquired:
            try:
                await redis_client.release_lock(REFRESH_LOCK_RESOURCE)
            except REDIS_STORE_ERRORS as e:
                logger.warning(f"Failed to release catalog refresh lock: {e}")
        await redis_client.close()
