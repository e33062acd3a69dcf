"""频道健康探测服务。

每个周期只探测一个有界样本（默认 10 个），游标跨周期推进，
多个周期后覆盖全部频道。探测结果按频道 ID upsert 到健康记录，
下一次刷新时 offline 频道会被排除（软删除，之后仍会被重新探测）。
"""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from src.core.config import settings
from src.core.domain.exceptions import StoreError
from src.core.infrastructure.logging import BusinessEvents
from src.modules.channels.domain.entities import ChannelHealthRecord, ChannelStatus
from src.modules.channels.domain.probe import StreamProbe, is_probeable
from src.modules.channels.domain.repository import (
    ChannelHealthRepository,
    ProbeCursorStore,
)
from src.modules.playlists.domain.entities import Channel


@dataclass(frozen=True)
class ProbeCycleResult:
    """一个探测周期的统计。"""

    probed: int = 0
    online: int = 0
    offline: int = 0
    skipped: int = 0  # 非 HTTP 地址，状态保持未知
    next_cursor: int = 0


def select_sample(
    channels: Sequence[Channel], cursor: int, sample_size: int
) -> tuple[list[Channel], int]:
    """从游标处取一个样本（到末尾后回绕），返回 (样本, 下一个游标)。"""
    total = len(channels)
    if total == 0 or sample_size <= 0:
        return [], 0
    start = cursor % total
    size = min(sample_size, total)
    sample = [channels[(start + offset) % total] for offset in range(size)]
    return sample, (start + size) % total


class ChannelHealthProber:
    """频道健康探测器。"""

    def __init__(
        self,
        probe: StreamProbe,
        health_repository: ChannelHealthRepository,
        cursor_store: ProbeCursorStore | None = None,
        sample_size: int | None = None,
        concurrency: int | None = None,
        timeout: float | None = None,
    ):
        self.probe = probe
        self.health_repository = health_repository
        self.cursor_store = cursor_store
        self.sample_size = sample_size or settings.HEALTH_PROBE_SAMPLE_SIZE
        self.concurrency = concurrency or settings.health_probe_concurrency
        self.timeout = timeout or settings.HEALTH_PROBE_TIMEOUT_SEC

    async def probe_batch(
        self,
        channels: Sequence[Channel],
        concurrency: int | None = None,
    ) -> dict[str, ChannelStatus]:
        """并发探测并写入健康记录。

        Args:
            channels: 待探测频道
            concurrency: 最大并发数，默认使用构造时的配置

        Returns:
            频道 ID -> 状态；非 HTTP 地址不出现在结果中
        """
        semaphore = asyncio.Semaphore(max(concurrency or self.concurrency, 1))
        probeable = [channel for channel in channels if is_probeable(channel.stream_url)]

        async def _probe(channel: Channel) -> tuple[Channel, ChannelStatus]:
            async with semaphore:
                start_time = time.time()
                status = await self._check(channel)
                BusinessEvents.channel_probed(
                    channel_id=channel.id,
                    status=status.value,
                    duration_ms=int((time.time() - start_time) * 1000),
                )
                return channel, status

        results = await asyncio.gather(*(_probe(channel) for channel in probeable))

        records = [
            ChannelHealthRecord(
                id=channel.id,
                status=status,
                title=channel.name,
                stream_url=channel.stream_url,
                thumbnail_url=channel.logo_url,
            )
            for channel, status in results
        ]
        try:
            await self.health_repository.upsert_many(records)
        except StoreError as e:
            logger.warning(f"Failed to store channel health records: {e.message}")
            BusinessEvents.feature_degraded(feature="health_store", reason=e.reason)

        return {channel.id: status for channel, status in results}

    async def run_cycle(self, channels: Sequence[Channel]) -> ProbeCycleResult:
        """执行一个探测周期：按游标取样、探测、推进游标。"""
        cursor = await self._load_cursor()
        sample, next_cursor = select_sample(channels, cursor, self.sample_size)
        if not sample:
            logger.info("No channels to probe")
            return ProbeCycleResult()

        statuses = await self.probe_batch(sample)
        await self._save_cursor(next_cursor)

        online = sum(1 for status in statuses.values() if status is ChannelStatus.ONLINE)
        result = ProbeCycleResult(
            probed=len(statuses),
            online=online,
            offline=len(statuses) - online,
            skipped=len(sample) - len(statuses),
            next_cursor=next_cursor,
        )
        logger.info(
            f"Probe cycle done: probed={result.probed}, online={result.online}, "
            f"offline={result.offline}, skipped={result.skipped}"
        )
        return result

    async def _check(self, channel: Channel) -> ChannelStatus:
        """任何错误或超时都视为 offline。"""
        try:
            reachable = await asyncio.wait_for(
                self.probe.check(channel.stream_url), timeout=self.timeout
            )
        except TimeoutError:
            logger.debug(f"Probe timeout for {channel.id} ({channel.stream_url})")
            reachable = False
        except Exception as e:
            logger.warning(f"Probe error for {channel.id} ({channel.stream_url}): {e}")
            reachable = False
        return ChannelStatus.ONLINE if reachable else ChannelStatus.OFFLINE

    async def _load_cursor(self) -> int:
        if self.cursor_store is None:
            return 0
        try:
            return await self.cursor_store.get()
        except StoreError as e:
            logger.warning(f"Failed to load probe cursor: {e.message}")
            return 0

    async def _save_cursor(self, cursor: int) -> None:
        if self.cursor_store is None:
            return
        try:
            await self.cursor_store.set(cursor)
        except StoreError as e:
            logger.warning(f"Failed to save probe cursor: {e.message}")
