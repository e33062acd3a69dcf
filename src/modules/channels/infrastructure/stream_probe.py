"""HTTP 播放地址探测。

先发 HEAD（开销最小）；部分流媒体服务器不支持 HEAD，
失败时退回流式 GET，只读取一个小块确认确实可以取到数据。
HEAD 只占用部分超时预算，挂起的 HEAD 不会挤掉 GET 的机会。
"""

import asyncio

import httpx
from loguru import logger

from src.core.config import settings
from src.modules.channels.domain.probe import StreamProbe

PROBE_CHUNK_SIZE = 256
HEAD_TIMEOUT_RATIO = 0.4


class HttpStreamProbe(StreamProbe):
    """基于 httpx 的播放地址探测器。"""

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout or settings.HEALTH_PROBE_TIMEOUT_SEC
        self.head_timeout = self.timeout * HEAD_TIMEOUT_RATIO
        self.user_agent = user_agent or settings.PLAYLIST_USER_AGENT
        self._transport = transport

    async def check(self, stream_url: str) -> bool:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
            headers={"User-Agent": self.user_agent},
        ) as client:
            try:
                head = await asyncio.wait_for(
                    client.head(stream_url), timeout=self.head_timeout
                )
                if head.is_success:
                    return True
            except TimeoutError:
                logger.debug(
                    f"HEAD probe timed out after {self.head_timeout:.1f}s for {stream_url}"
                )
            except httpx.HTTPError as e:
                logger.debug(f"HEAD probe failed for {stream_url}: {e}")

            try:
                async with client.stream("GET", stream_url) as response:
                    if not response.is_success:
                        logger.debug(
                            f"GET probe failed for {stream_url}: "
                            f"status {response.status_code}"
                        )
                        return False
                    async for _ in response.aiter_bytes(PROBE_CHUNK_SIZE):
                        break
                    return True
            except httpx.HTTPError as e:
                logger.debug(f"GET probe failed for {stream_url}: {e}")
                return False
