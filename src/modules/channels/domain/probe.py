"""Stream probe interface."""

from abc import ABC, abstractmethod

PROBEABLE_SCHEMES = ("http://", "https://")


def is_probeable(stream_url: str) -> bool:
    """只有 HTTP(S) 地址可以做轻量可达性检查。"""
    return stream_url.lower().startswith(PROBEABLE_SCHEMES)


class StreamProbe(ABC):
    """单个播放地址的可达性检查。"""

    @abstractmethod
    async def check(self, stream_url: str) -> bool:
        """可达返回 True；任何错误返回 False 或抛出异常（均视为 offline）。"""
        pass
