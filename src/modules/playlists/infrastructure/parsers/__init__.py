"""播放列表解析器模块。"""

from src.modules.playlists.infrastructure.parsers.base import BasePlaylistParser
from src.modules.playlists.infrastructure.parsers.factory import (
    PlaylistParserFactory,
    parse_playlist,
)
from src.modules.playlists.infrastructure.parsers.json_playlist import (
    JSONPlaylistParser,
)
from src.modules.playlists.infrastructure.parsers.m3u import M3UParser, render_m3u
from src.modules.playlists.infrastructure.parsers.xml_playlist import (
    XMLPlaylistParser,
)

__all__ = [
    "BasePlaylistParser",
    "JSONPlaylistParser",
    "M3UParser",
    "PlaylistParserFactory",
    "XMLPlaylistParser",
    "parse_playlist",
    "render_m3u",
]
