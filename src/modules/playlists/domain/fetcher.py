"""Fetcher domain interfaces and models."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

DIRECT_ACCESS_PATH = "direct"


@dataclass(frozen=True)
class FetchedPlaylist:
    """一次成功抓取得到的原始载荷。"""

    source_url: str
    content: bytes
    content_type: str | None
    access_path: str = DIRECT_ACCESS_PATH  # direct / relay-<n>


class SourceFetcher(ABC):
    """单个源的抓取接口。"""

    @abstractmethod
    async def fetch(self, source_url: str) -> FetchedPlaylist:
        """按访问路径顺序抓取，第一条成功的路径胜出。

        Raises:
            PlaylistFetchError: 所有访问路径均失败
        """
        pass
