"""扩展 M3U 解析器。

逐行扫描：
- 元数据行（#EXTINF 或包含 tvg-/group-title 等已知属性）开启一条待定记录
- 其后第一条形如 URL 的行（http/https/rtmp/udp）关闭该记录
- 没有后续 URL 的元数据行被静默丢弃，残缺的列表不会中断整个解析
"""

import re

from src.modules.playlists.domain.entities import Catalog, Channel
from src.modules.playlists.domain.formats import M3U_MARKER, PlaylistFormat
from src.modules.playlists.infrastructure.parsers.base import BasePlaylistParser

_ATTRIBUTE_RE = re.compile(r'([A-Za-z0-9_-]+)="([^"]*)"')

STREAM_URL_PREFIXES = ("http://", "https://", "rtmp://", "udp://")
METADATA_ATTRIBUTES = ("tvg-id=", "tvg-name=", "tvg-logo=", "group-title=")


class M3UParser(BasePlaylistParser):
    """扩展 M3U 解析器。"""

    format = PlaylistFormat.M3U

    def parse(self, text: str) -> list[Channel]:
        channels: list[Channel] = []
        pending: dict[str, str | None] | None = None

        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line:
                continue

            if self._is_stream_url(line):
                if pending is None:
                    continue
                channels.append(
                    self._build_channel(
                        index=len(channels),
                        stream_url=line,
                        name=pending["name"],
                        logo_url=pending["logo"],
                        group=pending["group"],
                    )
                )
                pending = None
                continue

            if self._is_metadata_line(line):
                # 连续两条元数据行时，前一条没有 URL，直接丢弃
                pending = self._parse_metadata(line)
                continue

            if pending is not None and line.upper().startswith("#EXTGRP:"):
                if not pending["group"]:
                    pending["group"] = line.split(":", 1)[1]

        return channels

    @staticmethod
    def _is_stream_url(line: str) -> bool:
        return line.lower().startswith(STREAM_URL_PREFIXES)

    @staticmethod
    def _is_metadata_line(line: str) -> bool:
        upper = line.upper()
        if upper.startswith(M3U_MARKER):
            return False
        if upper.startswith("#EXTINF"):
            return True
        lowered = line.lower()
        return any(key in lowered for key in METADATA_ATTRIBUTES)

    def _parse_metadata(self, line: str) -> dict[str, str | None]:
        attributes = {
            key.lower(): value for key, value in _ATTRIBUTE_RE.findall(line)
        }
        name = self._trailing_title(line) or attributes.get("tvg-name")
        return {
            "name": name,
            "logo": attributes.get("tvg-logo"),
            "group": attributes.get("group-title"),
        }

    @staticmethod
    def _trailing_title(line: str) -> str:
        """返回最后一个引号外逗号之后的文本。"""
        in_quotes = False
        last_comma = -1
        for position, char in enumerate(line):
            if char == '"':
                in_quotes = not in_quotes
            elif char == "," and not in_quotes:
                last_comma = position
        if last_comma < 0:
            return ""
        return line[last_comma + 1 :].strip()


def render_m3u(catalog: Catalog) -> str:
    """将 Catalog 序列化为扩展 M3U 文本。"""
    lines = [M3U_MARKER]
    for channel in catalog.all_channels:
        attributes = [f'tvg-name="{_quote_safe(channel.name)}"']
        if channel.logo_url:
            attributes.append(f'tvg-logo="{_quote_safe(channel.logo_url)}"')
        attributes.append(f'group-title="{_quote_safe(channel.group)}"')
        lines.append(f"#EXTINF:-1 {' '.join(attributes)},{channel.name}")
        lines.append(channel.stream_url)
    return "\n".join(lines) + "\n"


def _quote_safe(value: str) -> str:
    return value.replace('"', "'")
