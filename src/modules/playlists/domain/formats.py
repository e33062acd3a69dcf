"""Playlist format classification.

根据声明的 Content-Type 选择解析格式；无法判断时按内容前导字节嗅探，
仍无法判断则按扩展 M3U 尽力解析。
"""

from enum import StrEnum

M3U_MARKER = "#EXTM3U"

_BOM = "\ufeff"


class PlaylistFormat(StrEnum):
    """支持的播放列表格式。"""

    M3U = "m3u"
    JSON = "json"
    XML = "xml"


def decode_payload(raw: bytes | str) -> str:
    """将原始载荷解码为文本，并去掉 BOM。"""
    if isinstance(raw, bytes):
        text = raw.decode("utf-8", errors="replace")
    else:
        text = raw
    return text.lstrip(_BOM)


def format_from_content_type(content_type: str | None) -> PlaylistFormat | None:
    """从 Content-Type 推断格式，无法识别时返回 None。"""
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    if "mpegurl" in media_type or media_type.endswith("m3u"):
        return PlaylistFormat.M3U
    if media_type.endswith("json"):
        return PlaylistFormat.JSON
    if media_type.endswith("xml") and "html" not in media_type:
        return PlaylistFormat.XML
    return None


def sniff_format(raw: bytes | str) -> PlaylistFormat | None:
    """按前导字节嗅探格式，无法判断时返回 None。"""
    head = decode_payload(raw[:512]).lstrip()
    if head.startswith(("{", "[")):
        return PlaylistFormat.JSON
    if head.upper().startswith(M3U_MARKER):
        return PlaylistFormat.M3U
    if head.startswith("<") and not looks_like_html(head):
        return PlaylistFormat.XML
    return None


def classify_payload(content_type: str | None, raw: bytes | str) -> PlaylistFormat:
    """选择解析格式：Content-Type > 内容嗅探 > 默认 M3U。"""
    return (
        format_from_content_type(content_type)
        or sniff_format(raw)
        or PlaylistFormat.M3U
    )


def looks_like_html(raw: bytes | str) -> bool:
    snippet = decode_payload(raw[:512]).strip().lower()
    return snippet.startswith(("<!doctype html", "<html"))


def looks_like_playlist(content_type: str | None, raw: bytes | str) -> bool:
    """最小内容校验：拒绝空响应与 HTML 错误页；M3U 必须以 #EXTM3U 开头。"""
    text = decode_payload(raw[:512]).lstrip()
    if not text or looks_like_html(text):
        return False
    playlist_format = classify_payload(content_type, raw)
    if playlist_format is PlaylistFormat.M3U:
        return text.upper().startswith(M3U_MARKER)
    return True
