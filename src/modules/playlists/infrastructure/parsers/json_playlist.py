"""JSON 播放列表解析器。

支持三种结构：
- 顶层为频道对象数组
- 顶层为对象，频道数组位于 channels / items / streams 字段
- 顶层为对象，groups / categories 为分组数组，每个分组带 name 与频道数组，
  组内频道未声明分组时继承分组名

字段按别名顺序解析，缺少可解析 URL 的记录被丢弃。
"""

import json
from typing import Any

from loguru import logger

from src.modules.playlists.domain.entities import Channel
from src.modules.playlists.domain.exceptions import PlaylistParseError
from src.modules.playlists.domain.formats import PlaylistFormat
from src.modules.playlists.infrastructure.parsers.base import BasePlaylistParser

CONTAINER_KEYS = ("channels", "items", "streams")
GROUP_CONTAINER_KEYS = ("groups", "categories")

ID_KEYS = ("id", "channelId", "channel_id")
NAME_KEYS = ("name", "title", "channel", "channelName", "channel_name", "tvg-name")
LOGO_KEYS = (
    "logo",
    "logoUrl",
    "logoURL",
    "logo_url",
    "tvg-logo",
    "icon",
    "image",
    "thumbnail",
)
GROUP_KEYS = ("group", "group-title", "groupTitle", "category", "categories", "genre")
URL_KEYS = (
    "url",
    "stream",
    "streamUrl",
    "streamURL",
    "stream_url",
    "link",
    "source",
    "src",
)


class JSONPlaylistParser(BasePlaylistParser):
    """JSON 播放列表解析器。"""

    format = PlaylistFormat.JSON

    def parse(self, text: str) -> list[Channel]:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise PlaylistParseError(f"Invalid JSON: {e}", self.format) from e
        except RecursionError as e:
            raise PlaylistParseError("JSON nested too deeply", self.format) from e

        channels: list[Channel] = []

        for record, inherited_group in self._extract_records(payload):
            if not isinstance(record, dict):
                continue
            stream_url = self._resolve(record, URL_KEYS)
            if not stream_url:
                logger.debug(f"Dropping JSON record without stream URL: {record!r:.120}")
                continue
            channels.append(
                self._build_channel(
                    index=len(channels),
                    stream_url=stream_url,
                    name=self._resolve(record, NAME_KEYS),
                    logo_url=self._resolve(record, LOGO_KEYS),
                    group=self._resolve(record, GROUP_KEYS) or inherited_group,
                    native_id=self._resolve(record, ID_KEYS) or None,
                )
            )

        return channels

    def _extract_records(self, payload: Any) -> list[tuple[Any, str | None]]:
        """返回 (记录, 继承的分组名) 列表。"""
        if isinstance(payload, list):
            return [(record, None) for record in payload]
        if isinstance(payload, dict):
            for key in CONTAINER_KEYS:
                value = payload.get(key)
                if isinstance(value, list):
                    return [(record, None) for record in value]
            for key in GROUP_CONTAINER_KEYS:
                groups = payload.get(key)
                if isinstance(groups, list) and any(
                    isinstance(group, dict) for group in groups
                ):
                    return self._extract_grouped_records(groups)
        raise PlaylistParseError(
            "Expected an array or an object with channels/items/streams/groups",
            self.format,
        )

    def _extract_grouped_records(
        self, groups: list[Any]
    ) -> list[tuple[Any, str | None]]:
        # {"groups": [{"name": "News", "channels": [...]}, ...]}
        records: list[tuple[Any, str | None]] = []
        for group in groups:
            if not isinstance(group, dict):
                continue
            group_name = self._resolve(group, NAME_KEYS) or None
            for key in CONTAINER_KEYS:
                value = group.get(key)
                if isinstance(value, list):
                    records.extend((record, group_name) for record in value)
                    break
        return records

    def _resolve(self, record: dict[str, Any], aliases: tuple[str, ...]) -> str:
        """按别名顺序取第一个非空文本值；列表取第一个非空元素。"""
        for key in aliases:
            value = record.get(key)
            if isinstance(value, list):
                value = next(
                    (item for item in value if self._clean_text(item)), None
                )
            text = self._clean_text(value)
            if text:
                return text
        return ""
