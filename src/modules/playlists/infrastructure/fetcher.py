"""HTTP 源抓取器。

同一个源依次尝试多条访问路径：先直连，再按配置顺序经由各中转（relay）。
每条路径独立超时；非 2xx 状态码或未通过内容校验的响应都视为该路径失败。
"""

import asyncio
import time
from urllib.parse import quote

import httpx
from loguru import logger

from src.core.config import settings
from src.modules.playlists.domain.exceptions import FetchAttempt, PlaylistFetchError
from src.modules.playlists.domain.fetcher import (
    DIRECT_ACCESS_PATH,
    FetchedPlaylist,
    SourceFetcher,
)
from src.modules.playlists.domain.formats import looks_like_playlist

RELAY_URL_PLACEHOLDER = "{url}"

ACCEPT_HEADER = (
    "application/vnd.apple.mpegurl, audio/x-mpegurl, application/json, "
    "application/xml, text/xml, text/plain, */*"
)


def build_relay_url(relay: str, source_url: str) -> str:
    """拼接中转地址：含 {url} 占位符时替换为编码后的源地址，否则直接追加。"""
    if RELAY_URL_PLACEHOLDER in relay:
        return relay.replace(RELAY_URL_PLACEHOLDER, quote(source_url, safe=""))
    return f"{relay}{source_url}"


class HttpSourceFetcher(SourceFetcher):
    """基于 httpx 的源抓取器。"""

    def __init__(
        self,
        relay_urls: list[str] | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """初始化抓取器。

        Args:
            relay_urls: 中转前缀列表，默认使用 PLAYLIST_RELAY_URLS
            timeout: 单条访问路径的超时（秒）
            user_agent: 请求 UA
            transport: 自定义 transport（测试时注入 httpx.MockTransport）
        """
        self.relay_urls = (
            list(relay_urls) if relay_urls is not None else settings.PLAYLIST_RELAY_URLS
        )
        self.timeout = timeout or settings.PLAYLIST_FETCH_TIMEOUT_SEC
        self.user_agent = user_agent or settings.PLAYLIST_USER_AGENT
        self._transport = transport

    def access_paths(self, source_url: str) -> list[tuple[str, str]]:
        """返回 (访问路径名称, 请求 URL) 列表，直连在前。"""
        paths = [(DIRECT_ACCESS_PATH, source_url)]
        for index, relay in enumerate(self.relay_urls, start=1):
            paths.append((f"relay-{index}", build_relay_url(relay, source_url)))
        return paths

    async def fetch(self, source_url: str) -> FetchedPlaylist:
        attempts: list[FetchAttempt] = []

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
            headers={"User-Agent": self.user_agent, "Accept": ACCEPT_HEADER},
        ) as client:
            for access_path, request_url in self.access_paths(source_url):
                start_time = time.time()
                try:
                    # httpx 的超时只覆盖单次读写，整体再用 wait_for 兜底
                    response = await asyncio.wait_for(
                        client.get(request_url), timeout=self.timeout
                    )
                    response.raise_for_status()
                except TimeoutError:
                    reason = f"Timeout after {self.timeout}s"
                except httpx.TimeoutException as e:
                    reason = f"Timeout: {e}"
                except httpx.HTTPStatusError as e:
                    reason = f"HTTP {e.response.status_code}"
                except httpx.HTTPError as e:
                    reason = f"Error: {e}"
                else:
                    content_type = response.headers.get("content-type")
                    if looks_like_playlist(content_type, response.content):
                        duration_ms = int((time.time() - start_time) * 1000)
                        logger.debug(
                            f"Fetched {source_url} via {access_path} "
                            f"({len(response.content)} bytes, {duration_ms}ms)"
                        )
                        return FetchedPlaylist(
                            source_url=source_url,
                            content=response.content,
                            content_type=content_type,
                            access_path=access_path,
                        )
                    reason = "Response is not a playlist"

                logger.warning(
                    f"Playlist fetch failed for {source_url} via {access_path}: {reason}"
                )
                attempts.append(
                    FetchAttempt(access_path=access_path, url=request_url, reason=reason)
                )

        raise PlaylistFetchError(source_url, attempts)
