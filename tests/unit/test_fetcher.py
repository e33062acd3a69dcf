"""源抓取器单元测试。

使用 httpx.MockTransport 模拟直连与中转访问路径。
"""

import asyncio

import httpx
import pytest

from src.modules.playlists.domain.exceptions import PlaylistFetchError
from src.modules.playlists.infrastructure.fetcher import (
    HttpSourceFetcher,
    build_relay_url,
)

pytestmark = pytest.mark.anyio

SOURCE_URL = "https://src.test/list.m3u"
RELAY = "https://relay.test/?url={url}"
M3U_BODY = b"#EXTM3U\n#EXTINF:-1,A\nhttp://stream.test/a\n"


def make_fetcher(handler, relay_urls: list[str] | None = None, timeout: float = 1.0):
    return HttpSourceFetcher(
        relay_urls=[RELAY] if relay_urls is None else relay_urls,
        timeout=timeout,
        user_agent="channelSentry-test",
        transport=httpx.MockTransport(handler),
    )


def is_relay(request: httpx.Request) -> bool:
    return request.url.host == "relay.test"


class TestAccessPaths:
    """访问路径构造测试。"""

    def test_placeholder_is_url_encoded(self):
        url = build_relay_url(RELAY, SOURCE_URL)
        assert url == "https://relay.test/?url=https%3A%2F%2Fsrc.test%2Flist.m3u"

    def test_prefix_relay_appends_url(self):
        url = build_relay_url("https://corsproxy.io/?", SOURCE_URL)
        assert url == "https://corsproxy.io/?https://src.test/list.m3u"

    def test_direct_first_then_relays_in_order(self):
        fetcher = make_fetcher(
            lambda r: httpx.Response(200),
            relay_urls=["https://r1.test/", "https://r2.test/"],
        )
        paths = fetcher.access_paths(SOURCE_URL)
        assert [name for name, _ in paths] == ["direct", "relay-1", "relay-2"]
        assert paths[0][1] == SOURCE_URL
        assert paths[2][1] == "https://r2.test/https://src.test/list.m3u"


class TestHttpSourceFetcher:
    """抓取流程测试。"""

    async def test_direct_success(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, content=M3U_BODY, headers={"content-type": "audio/x-mpegurl"}
            )

        fetched = await make_fetcher(handler).fetch(SOURCE_URL)

        assert fetched.access_path == "direct"
        assert fetched.content == M3U_BODY
        assert fetched.content_type == "audio/x-mpegurl"
        assert fetched.source_url == SOURCE_URL
        assert len(requests) == 1
        assert requests[0].headers["user-agent"] == "channelSentry-test"

    async def test_falls_back_to_relay_on_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if is_relay(request):
                assert request.url.params["url"] == SOURCE_URL
                return httpx.Response(200, content=M3U_BODY)
            return httpx.Response(403)

        fetched = await make_fetcher(handler).fetch(SOURCE_URL)

        assert fetched.access_path == "relay-1"
        assert fetched.content == M3U_BODY

    async def test_html_response_is_attempt_failure(self):
        """返回 HTML 错误页的路径视为失败。"""

        def handler(request: httpx.Request) -> httpx.Response:
            if is_relay(request):
                return httpx.Response(200, content=M3U_BODY)
            return httpx.Response(
                200,
                content=b"<!DOCTYPE html><html>Access denied</html>",
                headers={"content-type": "text/html"},
            )

        fetched = await make_fetcher(handler).fetch(SOURCE_URL)
        assert fetched.access_path == "relay-1"

    async def test_m3u_without_marker_is_attempt_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"just some text")

        with pytest.raises(PlaylistFetchError) as exc_info:
            await make_fetcher(handler).fetch(SOURCE_URL)

        reasons = [a.reason for a in exc_info.value.attempts]
        assert reasons == ["Response is not a playlist"] * 2

    async def test_all_paths_fail(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if is_relay(request):
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(500)

        with pytest.raises(PlaylistFetchError) as exc_info:
            await make_fetcher(handler).fetch(SOURCE_URL)

        error = exc_info.value
        assert error.source_url == SOURCE_URL
        assert [a.access_path for a in error.attempts] == ["direct", "relay-1"]
        assert error.attempts[0].reason == "HTTP 500"
        assert "connection refused" in error.attempts[1].reason
        assert error.error_code == "PLAYLIST_FETCH_FAILED"

    async def test_slow_path_times_out(self):
        """超时的路径被放弃，继续尝试下一条。"""

        async def handler(request: httpx.Request) -> httpx.Response:
            if not is_relay(request):
                await asyncio.sleep(5)
            return httpx.Response(200, content=M3U_BODY)

        fetched = await make_fetcher(handler, timeout=0.05).fetch(SOURCE_URL)
        assert fetched.access_path == "relay-1"

    async def test_no_relays_single_attempt(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        with pytest.raises(PlaylistFetchError) as exc_info:
            await make_fetcher(handler, relay_urls=[]).fetch(SOURCE_URL)

        assert len(exc_info.value.attempts) == 1

    async def test_json_payload_accepted(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b'[{"name": "A", "url": "http://stream.test/a"}]',
                headers={"content-type": "application/json"},
            )

        fetched = await make_fetcher(handler).fetch(SOURCE_URL)
        assert fetched.content_type == "application/json"
