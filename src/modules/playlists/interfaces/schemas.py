"""Playlist API schemas.

字段名与前端播放页约定保持一致（logo / url / allChannels）。
"""

from pydantic import BaseModel, ConfigDict, Field

from src.modules.playlists.domain.entities import Catalog, CatalogOrigin, Channel


class ChannelResponse(BaseModel):
    """Channel response."""

    id: str
    name: str
    logo: str | None = None
    group: str
    url: str

    @classmethod
    def from_domain(cls, channel: Channel) -> "ChannelResponse":
        return cls(
            id=channel.id,
            name=channel.name,
            logo=channel.logo_url,
            group=channel.group,
            url=channel.stream_url,
        )


class CategoryResponse(BaseModel):
    """Category response."""

    id: str
    name: str
    channels: list[ChannelResponse]


class CatalogResponse(BaseModel):
    """Catalog response."""

    model_config = ConfigDict(populate_by_name=True)

    categories: list[CategoryResponse]
    all_channels: list[ChannelResponse] = Field(..., alias="allChannels")

    @classmethod
    def from_domain(cls, catalog: Catalog) -> "CatalogResponse":
        return cls(
            categories=[
                CategoryResponse(
                    id=category.id,
                    name=category.name,
                    channels=[ChannelResponse.from_domain(c) for c in category.channels],
                )
                for category in catalog.categories
            ],
            all_channels=[ChannelResponse.from_domain(c) for c in catalog.all_channels],
        )


class CatalogRefreshResponse(BaseModel):
    """Catalog refresh response."""

    model_config = ConfigDict(populate_by_name=True)

    catalog: CatalogResponse
    origin: CatalogOrigin = Field(..., description="live / default / cache / demo")
    is_degraded: bool = Field(
        ..., alias="isDegraded", description="是否正在使用缓存或演示数据"
    )
    sources_ok: int = Field(..., alias="sourcesOk")
    sources_failed: int = Field(..., alias="sourcesFailed")
    filtered_offline: int = Field(..., alias="filteredOffline")
