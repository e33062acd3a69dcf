"""Playlist domain entities.

Channel / Category / Catalog 均为不可变值对象：每次刷新生成全新的 Catalog，
整体替换上一份快照，从不做增量修改。
"""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNCATEGORIZED = "Uncategorized"


class Channel(BaseModel):
    """单个直播频道。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Catalog 内唯一的稳定 ID")
    name: str = Field(..., description="展示名称")
    logo_url: str | None = Field(default=None, description="台标 URL")
    group: str = Field(default=UNCATEGORIZED, description="分类标签")
    stream_url: str = Field(..., description="播放地址（去重键）")

    @field_validator("stream_url")
    @classmethod
    def _stream_url_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("stream_url must not be empty")
        return value

    @field_validator("group")
    @classmethod
    def _group_default(cls, value: str) -> str:
        return value.strip() or UNCATEGORIZED


class Category(BaseModel):
    """由 group 派生的频道分类。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="由分类名规范化得到的 slug")
    name: str
    channels: tuple[Channel, ...] = ()


class Catalog(BaseModel):
    """一次刷新产出的完整快照。"""

    model_config = ConfigDict(frozen=True)

    categories: tuple[Category, ...] = ()
    all_channels: tuple[Channel, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.all_channels

    @property
    def channel_ids(self) -> set[str]:
        return {channel.id for channel in self.all_channels}


class SourceDescriptor(BaseModel):
    """播放列表源配置（由管理端维护，本服务只读）。"""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    url: str
    display_name: str
    priority: int = 0  # 数值越小越先尝试
    active: bool = True


class CatalogOrigin(StrEnum):
    """Catalog 的数据来源，用于调用方展示“正在使用缓存/演示数据”。"""

    LIVE = "live"  # 已配置源
    DEFAULT = "default"  # 内置默认源
    CACHE = "cache"
    DEMO = "demo"


class CachedPlaylist(BaseModel):
    """缓存的原始播放列表内容。"""

    model_config = ConfigDict(frozen=True)

    content: str
    content_type: str | None = None
    source_url: str | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
