"""Catalog 构建、合并与去重。

- 去重键为 stream_url（精确匹配），先出现者保留
- 分类在合并后从头重建：group 先做大小写折叠与空白归一，等价标签合并为同一分类
- 所有函数均为纯函数，输入输出都是不可变的 Catalog
"""

import re
from collections.abc import Iterable, Sequence

from src.modules.playlists.domain.entities import (
    UNCATEGORIZED,
    Catalog,
    Category,
    Channel,
)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_group(group: str | None) -> str:
    """归一化分类名（去首尾空白、合并连续空白），空值返回 Uncategorized。"""
    cleaned = _WHITESPACE_RE.sub(" ", group or "").strip()
    return cleaned or UNCATEGORIZED


def category_id(group: str | None) -> str:
    """由分类名派生稳定的分类 ID。"""
    slug = normalize_group(group).casefold().replace(" ", "-")
    return f"category-{slug}"


def build_catalog(channels: Iterable[Channel]) -> Catalog:
    """从频道列表构建 Catalog，按 group 重建分类。

    分类与频道均保持首次出现的顺序；每个频道恰好属于一个分类。
    """
    all_channels = tuple(channels)
    names: dict[str, str] = {}
    members: dict[str, list[Channel]] = {}

    for channel in all_channels:
        key = category_id(channel.group)
        if key not in names:
            names[key] = normalize_group(channel.group)
            members[key] = []
        members[key].append(channel)

    categories = tuple(
        Category(id=key, name=names[key], channels=tuple(members[key]))
        for key in names
    )
    return Catalog(categories=categories, all_channels=all_channels)


def merge_catalogs(catalogs: Sequence[Catalog]) -> Catalog:
    """合并多个 Catalog。

    - 相同 stream_url 视为同一频道，保留首次出现的元数据
    - 若不同频道的 ID 冲突，后出现者追加 -2、-3 … 后缀以保证 ID 唯一
    """
    seen_urls: set[str] = set()
    used_ids: set[str] = set()
    merged: list[Channel] = []

    for catalog in catalogs:
        for channel in catalog.all_channels:
            if channel.stream_url in seen_urls:
                continue
            seen_urls.add(channel.stream_url)

            channel_id = _unique_id(channel.id, used_ids)
            used_ids.add(channel_id)
            if channel_id != channel.id:
                channel = channel.model_copy(update={"id": channel_id})
            merged.append(channel)

    return build_catalog(merged)


def exclude_channels(catalog: Catalog, channel_ids: set[str]) -> Catalog:
    """移除指定 ID 的频道并重建分类（空分类随之消失）。"""
    if not channel_ids:
        return catalog
    return build_catalog(
        channel for channel in catalog.all_channels if channel.id not in channel_ids
    )


def namespace_channel_ids(catalog: Catalog, namespace: str) -> Catalog:
    """为频道 ID 加上来源命名空间，使不同源的序号 ID 互不冲突。"""
    return build_catalog(
        channel.model_copy(update={"id": f"{namespace}:{channel.id}"})
        for channel in catalog.all_channels
    )


def _unique_id(channel_id: str, used_ids: set[str]) -> str:
    if channel_id not in used_ids:
        return channel_id
    suffix = 2
    while f"{channel_id}-{suffix}" in used_ids:
        suffix += 1
    return f"{channel_id}-{suffix}"
