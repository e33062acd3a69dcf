"""解析器工厂。

根据分类结果（PlaylistFormat）选择解析器；非 M3U 格式解析失败或为空时，
再按扩展 M3U 尽力解析一次。
"""

from loguru import logger

from src.modules.playlists.domain.catalog import build_catalog
from src.modules.playlists.domain.entities import Catalog
from src.modules.playlists.domain.exceptions import PlaylistParseError
from src.modules.playlists.domain.formats import (
    PlaylistFormat,
    classify_payload,
    decode_payload,
)
from src.modules.playlists.infrastructure.parsers.base import BasePlaylistParser
from src.modules.playlists.infrastructure.parsers.json_playlist import (
    JSONPlaylistParser,
)
from src.modules.playlists.infrastructure.parsers.m3u import M3UParser
from src.modules.playlists.infrastructure.parsers.xml_playlist import (
    XMLPlaylistParser,
)


class PlaylistParserFactory:
    """解析器工厂类。"""

    _parser_map: dict[PlaylistFormat, type[BasePlaylistParser]] = {
        PlaylistFormat.M3U: M3UParser,
        PlaylistFormat.JSON: JSONPlaylistParser,
        PlaylistFormat.XML: XMLPlaylistParser,
    }

    @classmethod
    def create(cls, playlist_format: PlaylistFormat) -> BasePlaylistParser:
        """根据格式创建解析器。

        Raises:
            ValueError: 不支持的格式
        """
        parser_class = cls._parser_map.get(playlist_format)
        if parser_class is None:
            raise ValueError(f"Unsupported playlist format: {playlist_format}")
        return parser_class()


def parse_playlist(raw: bytes | str, content_type: str | None = None) -> Catalog:
    """解析原始载荷为 Catalog。

    Args:
        raw: 原始载荷
        content_type: 声明的 Content-Type（可为空）

    Returns:
        Catalog: 至少包含一个频道

    Raises:
        PlaylistParseError: 任何解析器都无法得到频道
    """
    text = decode_payload(raw)
    playlist_format = classify_payload(content_type, text)

    try:
        channels = PlaylistParserFactory.create(playlist_format).parse(text)
    except PlaylistParseError as e:
        if playlist_format is PlaylistFormat.M3U:
            raise
        logger.warning(f"{e.message}; falling back to M3U parsing")
        channels = []

    if not channels and playlist_format is not PlaylistFormat.M3U:
        channels = M3UParser().parse(text)
        if channels:
            playlist_format = PlaylistFormat.M3U

    if not channels:
        raise PlaylistParseError("No playable channels found", playlist_format)

    logger.debug(f"Parsed {len(channels)} channels as {playlist_format}")
    return build_catalog(channels)
