"""解析器基类定义。

所有具体解析器（M3U / JSON / XML）都继承此基类，输出统一的频道列表。
"""

from abc import ABC, abstractmethod
from typing import Any

from src.modules.playlists.domain.entities import UNCATEGORIZED, Channel
from src.modules.playlists.domain.formats import PlaylistFormat


class BasePlaylistParser(ABC):
    """播放列表解析器基类。"""

    format: PlaylistFormat

    @abstractmethod
    def parse(self, text: str) -> list[Channel]:
        """将文本解析为频道列表。

        无法产出 stream_url 的记录直接丢弃，不影响其余记录。

        Raises:
            PlaylistParseError: 载荷整体无法按该格式解析
        """
        pass

    def _build_channel(
        self,
        index: int,
        stream_url: str,
        name: str | None = None,
        logo_url: str | None = None,
        group: str | None = None,
        native_id: str | None = None,
    ) -> Channel:
        """构建频道；缺少原生 ID 时按序号分配 channel-<n>。"""
        return Channel(
            id=native_id or f"channel-{index}",
            name=self._clean_text(name) or f"Channel {index + 1}",
            logo_url=self._clean_text(logo_url) or None,
            group=self._clean_text(group) or UNCATEGORIZED,
            stream_url=stream_url.strip(),
        )

    @staticmethod
    def _clean_text(value: Any) -> str:
        """清理文本：非字符串返回空串，合并多余空白。"""
        if isinstance(value, bool) or value is None:
            return ""
        if isinstance(value, int | float):
            return str(value)
        if not isinstance(value, str):
            return ""
        return " ".join(value.split())
