"""HttpStreamProbe 单元测试。"""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from src.modules.channels.application.health_prober import ChannelHealthProber
from src.modules.channels.domain.entities import ChannelStatus
from src.modules.channels.domain.repository import ChannelHealthRepository
from src.modules.channels.infrastructure.stream_probe import HttpStreamProbe
from tests.conftest import make_channel

pytestmark = pytest.mark.anyio

STREAM_URL = "http://stream.test/live.m3u8"


def make_probe(handler) -> HttpStreamProbe:
    return HttpStreamProbe(
        timeout=1,
        user_agent="channelSentry-test",
        transport=httpx.MockTransport(handler),
    )


class TestHttpStreamProbe:
    async def test_head_success(self):
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(200)

        assert await make_probe(handler).check(STREAM_URL) is True
        assert methods == ["HEAD"]

    async def test_falls_back_to_get_when_head_rejected(self):
        """不支持 HEAD 的服务器（405）退回 GET。"""
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            if request.method == "HEAD":
                return httpx.Response(405)
            return httpx.Response(200, content=b"#EXTM3U\n" + b"x" * 1024)

        assert await make_probe(handler).check(STREAM_URL) is True
        assert methods == ["HEAD", "GET"]

    async def test_falls_back_to_get_on_head_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "HEAD":
                raise httpx.RemoteProtocolError("bad head", request=request)
            return httpx.Response(200, content=b"data")

        assert await make_probe(handler).check(STREAM_URL) is True

    async def test_error_status_is_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        assert await make_probe(handler).check(STREAM_URL) is False

    async def test_connection_error_is_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        assert await make_probe(handler).check(STREAM_URL) is False

    async def test_hanging_head_leaves_budget_for_get(self):
        """HEAD 挂起时在部分预算内放弃，GET 仍可在外层超时内完成。"""
        methods: list[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            if request.method == "HEAD":
                await asyncio.sleep(30)
            return httpx.Response(200, content=b"data")

        probe = make_probe(handler)
        prober = ChannelHealthProber(probe, AsyncMock(spec=ChannelHealthRepository), timeout=1)

        statuses = await prober.probe_batch([make_channel("live", STREAM_URL)])

        assert statuses == {"live": ChannelStatus.ONLINE}
        assert methods == ["HEAD", "GET"]
        assert probe.head_timeout < probe.timeout
