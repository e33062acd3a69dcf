"""频道健康探测单元测试。"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.domain.exceptions import StoreError
from src.modules.channels.application.health_prober import (
    ChannelHealthProber,
    select_sample,
)
from src.modules.channels.domain.entities import ChannelStatus
from src.modules.channels.domain.probe import StreamProbe, is_probeable
from src.modules.channels.domain.repository import (
    ChannelHealthRepository,
    ProbeCursorStore,
)
from tests.conftest import make_channel

pytestmark = pytest.mark.anyio


class FakeProbe(StreamProbe):
    """按 URL 返回预设结果；记录最大并发数。"""

    def __init__(self, results: dict[str, bool | Exception] | None = None, delay: float = 0):
        self.results = results or {}
        self.delay = delay
        self.checked: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def check(self, stream_url: str) -> bool:
        self.checked.append(stream_url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.results.get(stream_url, True)
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


@pytest.fixture
def health_repository() -> MagicMock:
    repo = MagicMock(spec=ChannelHealthRepository)
    repo.upsert_many = AsyncMock()
    repo.get_offline_ids = AsyncMock(return_value=set())
    return repo


@pytest.fixture
def cursor_store() -> MagicMock:
    store = MagicMock(spec=ProbeCursorStore)
    store.get = AsyncMock(return_value=0)
    store.set = AsyncMock()
    return store


def channels(count: int) -> list:
    return [make_channel(f"ch-{i}", f"http://stream.test/{i}") for i in range(count)]


class TestIsProbeable:
    def test_http_schemes(self):
        assert is_probeable("http://a.test/live")
        assert is_probeable("HTTPS://a.test/live")

    def test_other_schemes(self):
        assert not is_probeable("rtmp://a.test/live")
        assert not is_probeable("udp://239.0.0.1:1234")


class TestSelectSample:
    """轮询取样测试。"""

    def test_first_window(self):
        sample, next_cursor = select_sample(channels(25), 0, 10)
        assert [c.id for c in sample] == [f"ch-{i}" for i in range(10)]
        assert next_cursor == 10

    def test_wraps_around(self):
        sample, next_cursor = select_sample(channels(25), 20, 10)
        assert [c.id for c in sample] == [f"ch-{i}" for i in (20, 21, 22, 23, 24, 0, 1, 2, 3, 4)]
        assert next_cursor == 5

    def test_sample_larger_than_catalog(self):
        sample, next_cursor = select_sample(channels(3), 1, 10)
        assert [c.id for c in sample] == ["ch-1", "ch-2", "ch-0"]
        assert next_cursor == 1

    def test_stale_cursor_is_wrapped(self):
        """目录变小后游标越界，按取模继续。"""
        sample, _ = select_sample(channels(4), 9, 2)
        assert [c.id for c in sample] == ["ch-1", "ch-2"]

    def test_empty(self):
        assert select_sample([], 5, 10) == ([], 0)

    def test_full_coverage_over_cycles(self):
        all_channels = channels(23)
        cursor = 0
        seen: set[str] = set()
        for _ in range(3):
            sample, cursor = select_sample(all_channels, cursor, 10)
            seen.update(c.id for c in sample)
        assert seen == {c.id for c in all_channels}


class TestProbeBatch:
    """批量探测测试。"""

    async def test_statuses_and_records(self, health_repository):
        batch = [
            make_channel("up", "http://stream.test/up", name="Up", logo_url="http://logo/up.png"),
            make_channel("down", "http://stream.test/down", name="Down"),
        ]
        probe = FakeProbe({"http://stream.test/down": False})
        prober = ChannelHealthProber(probe, health_repository, concurrency=5, timeout=1)

        statuses = await prober.probe_batch(batch)

        assert statuses == {"up": ChannelStatus.ONLINE, "down": ChannelStatus.OFFLINE}
        (records,) = health_repository.upsert_many.await_args.args
        by_id = {r.id: r for r in records}
        assert by_id["up"].status is ChannelStatus.ONLINE
        assert by_id["up"].title == "Up"
        assert by_id["up"].thumbnail_url == "http://logo/up.png"
        assert by_id["down"].stream_url == "http://stream.test/down"
        assert by_id["down"].last_checked is not None

    async def test_probe_exception_means_offline(self, health_repository):
        probe = FakeProbe({"http://stream.test/0": RuntimeError("reset by peer")})
        prober = ChannelHealthProber(probe, health_repository, timeout=1)

        statuses = await prober.probe_batch(channels(1))

        assert statuses == {"ch-0": ChannelStatus.OFFLINE}

    async def test_timeout_means_offline(self, health_repository):
        prober = ChannelHealthProber(FakeProbe(delay=1), health_repository, timeout=0.05)

        statuses = await prober.probe_batch(channels(2))

        assert set(statuses.values()) == {ChannelStatus.OFFLINE}

    async def test_non_http_channels_are_skipped(self, health_repository):
        """非 HTTP 地址不探测，也不写入健康记录。"""
        batch = [
            make_channel("web", "http://stream.test/web"),
            make_channel("rtmp", "rtmp://stream.test/live"),
        ]
        probe = FakeProbe()
        prober = ChannelHealthProber(probe, health_repository, timeout=1)

        statuses = await prober.probe_batch(batch)

        assert list(statuses) == ["web"]
        assert probe.checked == ["http://stream.test/web"]
        (records,) = health_repository.upsert_many.await_args.args
        assert [r.id for r in records] == ["web"]

    async def test_concurrency_is_bounded(self, health_repository):
        probe = FakeProbe(delay=0.02)
        prober = ChannelHealthProber(probe, health_repository, concurrency=3, timeout=1)

        await prober.probe_batch(channels(10))

        assert len(probe.checked) == 10
        assert probe.max_in_flight <= 3

    async def test_concurrency_override(self, health_repository):
        probe = FakeProbe(delay=0.02)
        prober = ChannelHealthProber(probe, health_repository, concurrency=5, timeout=1)

        await prober.probe_batch(channels(6), concurrency=1)

        assert probe.max_in_flight == 1

    async def test_store_failure_still_returns_statuses(self, health_repository):
        health_repository.upsert_many.side_effect = StoreError("health", "db down")
        prober = ChannelHealthProber(FakeProbe(), health_repository, timeout=1)

        statuses = await prober.probe_batch(channels(2))

        assert len(statuses) == 2


class TestRunCycle:
    """探测周期测试。"""

    async def test_cycle_advances_cursor(self, health_repository, cursor_store):
        cursor_store.get.return_value = 8
        probe = FakeProbe({"http://stream.test/9": False})
        prober = ChannelHealthProber(
            probe, health_repository, cursor_store, sample_size=4, timeout=1
        )

        result = await prober.run_cycle(channels(10))

        assert probe.checked == [f"http://stream.test/{i}" for i in (8, 9, 0, 1)]
        assert result.probed == 4
        assert result.online == 3
        assert result.offline == 1
        assert result.next_cursor == 2
        cursor_store.set.assert_awaited_once_with(2)

    async def test_skipped_channels_counted(self, health_repository, cursor_store):
        batch = [
            make_channel("a", "http://stream.test/a"),
            make_channel("b", "udp://239.0.0.1:1234"),
        ]
        prober = ChannelHealthProber(
            FakeProbe(), health_repository, cursor_store, sample_size=10, timeout=1
        )

        result = await prober.run_cycle(batch)

        assert result.probed == 1
        assert result.skipped == 1

    async def test_empty_catalog(self, health_repository, cursor_store):
        prober = ChannelHealthProber(FakeProbe(), health_repository, cursor_store, timeout=1)

        result = await prober.run_cycle([])

        assert result.probed == 0
        health_repository.upsert_many.assert_not_awaited()
        cursor_store.set.assert_not_awaited()

    async def test_cursor_store_failure_starts_from_zero(
        self, health_repository, cursor_store
    ):
        cursor_store.get.side_effect = StoreError("cursor", "timeout")
        cursor_store.set.side_effect = StoreError("cursor", "timeout")
        probe = FakeProbe()
        prober = ChannelHealthProber(
            probe, health_repository, cursor_store, sample_size=2, timeout=1
        )

        result = await prober.run_cycle(channels(5))

        assert probe.checked == ["http://stream.test/0", "http://stream.test/1"]
        assert result.next_cursor == 2

    async def test_without_cursor_store(self, health_repository):
        probe = FakeProbe()
        prober = ChannelHealthProber(probe, health_repository, sample_size=3, timeout=1)

        result = await prober.run_cycle(channels(5))

        assert result.probed == 3
