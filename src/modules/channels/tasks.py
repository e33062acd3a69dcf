"""频道健康探测 Celery 任务。"""

import asyncio
from typing import Any

from celery import shared_task
from loguru import logger

from src.core.infrastructure.celery.queues import Queues
from src.core.infrastructure.celery.retry import DEFAULT_RETRYABLE_EXCEPTIONS


@shared_task(
    name="src.modules.channels.tasks.probe_channel_health",
    bind=True,
    max_retries=1,
    default_retry_delay=60,
    autoretry_for=DEFAULT_RETRYABLE_EXCEPTIONS,
    queue=Queues.PROBE,
)
def probe_channel_health(_self: object) -> dict[str, Any]:
    """探测一个样本窗口内的频道。

    由 Celery Beat 按 HEALTH_PROBE_INTERVAL_SEC 调用；每次刷新成功后也会触发一次。
    """
    return asyncio.run(_probe_channel_health_async())


async def _probe_channel_health_async() -> dict[str, Any]:
    """异步版本的探测逻辑。"""
    from src.core.infrastructure.database.session import get_async_session
    from src.core.infrastructure.redis import RedisClient
    from src.modules.channels.application.health_prober import ChannelHealthProber
    from src.modules.channels.infrastructure.mappers import ChannelHealthMapper
    from src.modules.channels.infrastructure.repositories import (
        PostgreSQLChannelHealthRepository,
        RedisProbeCursorStore,
    )
    from src.modules.channels.infrastructure.stream_probe import HttpStreamProbe
    from src.modules.playlists.infrastructure.repositories import (
        RedisCatalogSnapshotStore,
    )

    redis_client = RedisClient()
    try:
        candidates = await RedisCatalogSnapshotStore(redis_client).get_probe_candidates()
        if not candidates:
            logger.info("No published catalog yet, skipping channel probe")
            return {"probed": 0}

        async with get_async_session() as session:
            prober = ChannelHealthProber(
                probe=HttpStreamProbe(),
                health_repository=PostgreSQLChannelHealthRepository(
                    session, ChannelHealthMapper()
                ),
                cursor_store=RedisProbeCursorStore(redis_client),
            )
            result = await prober.run_cycle(candidates)
            await session.commit()

        return {
            "probed": result.probed,
            "online": result.online,
            "offline": result.offline,
            "skipped": result.skipped,
        }
    finally:
        await redis_client.close()
