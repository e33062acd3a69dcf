"""XML 播放列表解析器。

不假设任何 schema：按文档顺序遍历元素树，能解析出播放地址（URL 别名
子元素或属性）的元素即视为频道元素。若其后代中还有带名称的频道元素
（如 RSS 的 <channel> 下的 <item>），该元素视为容器，继续向下展开。
遍历使用显式栈，深层嵌套不会耗尽调用栈。
"""

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator

from src.modules.playlists.domain.entities import Channel
from src.modules.playlists.domain.exceptions import PlaylistParseError
from src.modules.playlists.domain.formats import PlaylistFormat
from src.modules.playlists.infrastructure.parsers.base import BasePlaylistParser

_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")

NAME_TAGS = ("name", "title", "display-name", "channelname", "channel-name")
LOGO_TAGS = ("logo", "logourl", "logo_url", "icon", "image", "thumbnail")
GROUP_TAGS = ("group", "group-title", "category", "genre")
URL_TAGS = ("url", "stream", "streamurl", "stream_url", "link", "source", "src")

# 字段元素本身（如 <url src="..."/>）不作为频道元素
FIELD_TAGS = frozenset(NAME_TAGS + LOGO_TAGS + GROUP_TAGS + URL_TAGS)

_VALUE_ATTRIBUTES = ("src", "href", "url", "value")


class XMLPlaylistParser(BasePlaylistParser):
    """XML 播放列表解析器。"""

    format = PlaylistFormat.XML

    def parse(self, text: str) -> list[Channel]:
        try:
            root = ET.fromstring(_XML_DECLARATION_RE.sub("", text, count=1))
        except ET.ParseError as e:
            raise PlaylistParseError(f"Invalid XML: {e}", self.format) from e
        except RecursionError as e:
            raise PlaylistParseError("XML nested too deeply", self.format) from e

        channels: list[Channel] = []
        for element, inherited_group in self._iter_channel_elements(root):
            channels.append(
                self._build_channel(
                    index=len(channels),
                    stream_url=self._resolve(element, URL_TAGS),
                    name=self._resolve(element, NAME_TAGS),
                    logo_url=self._resolve(element, LOGO_TAGS),
                    group=self._resolve(element, GROUP_TAGS) or inherited_group,
                    native_id=self._clean_text(element.get("id")) or None,
                )
            )
        return channels

    def _iter_channel_elements(
        self, root: ET.Element
    ) -> Iterator[tuple[ET.Element, str | None]]:
        containers = self._find_containers(root)
        stack: list[tuple[ET.Element, str | None]] = [(root, None)]

        while stack:
            element, inherited_group = stack.pop()
            tag = _local_name(element)
            if tag is None:
                continue
            if (
                tag not in FIELD_TAGS
                and element not in containers
                and "://" in self._resolve(element, URL_TAGS)
            ):
                yield element, inherited_group
                continue
            if tag in GROUP_TAGS:
                # <group name="News"><channel>...</channel></group>
                inherited_group = (
                    self._clean_text(element.get("name") or element.get("title"))
                    or inherited_group
                )
            # 逆序入栈，保持文档顺序出栈
            stack.extend((child, inherited_group) for child in reversed(element))

    def _find_containers(self, root: ET.Element) -> set[ET.Element]:
        """带名称的频道元素的所有祖先。"""
        parents = {child: parent for parent in root.iter() for child in parent}
        containers: set[ET.Element] = set()

        for element in root.iter():
            tag = _local_name(element)
            if tag is None or tag in FIELD_TAGS:
                continue
            if "://" not in self._resolve(element, URL_TAGS):
                continue
            if not self._resolve(element, NAME_TAGS):
                continue
            ancestor = parents.get(element)
            while ancestor is not None and ancestor not in containers:
                containers.add(ancestor)
                ancestor = parents.get(ancestor)

        return containers

    def _resolve(self, element: ET.Element, aliases: tuple[str, ...]) -> str:
        """先查属性，再查直接子元素（文本或 src/href 属性）。"""
        attributes = {
            key.split("}")[-1].lower(): value for key, value in element.attrib.items()
        }
        for alias in aliases:
            text = self._clean_text(attributes.get(alias))
            if text:
                return text

        for alias in aliases:
            for child in element:
                if _local_name(child) != alias:
                    continue
                text = self._clean_text(child.text)
                if not text:
                    text = next(
                        (
                            self._clean_text(child.get(attr))
                            for attr in _VALUE_ATTRIBUTES
                            if self._clean_text(child.get(attr))
                        ),
                        "",
                    )
                if text:
                    return text
        return ""


def _local_name(element: ET.Element) -> str | None:
    """去掉命名空间后的小写标签名；注释/处理指令返回 None。"""
    if not isinstance(element.tag, str):
        return None
    return element.tag.split("}")[-1].lower()
