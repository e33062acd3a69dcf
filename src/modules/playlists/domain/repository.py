"""Playlist repository interfaces.

实现类需将底层存储异常（SQLAlchemyError / RedisError 等）转换为 StoreError。
"""

from abc import ABC, abstractmethod

from src.modules.playlists.domain.entities import (
    CachedPlaylist,
    Catalog,
    Channel,
    SourceDescriptor,
)


class SourceRepository(ABC):
    """播放列表源配置（只读）。"""

    @abstractmethod
    async def list_active(self) -> list[SourceDescriptor]:
        """返回所有启用的源，按 priority 升序。"""
        pass


class PlaylistCacheRepository(ABC):
    """最近一次成功抓取的原始播放列表缓存。"""

    @abstractmethod
    async def get(self, name: str) -> CachedPlaylist | None:
        """读取缓存，不存在时返回 None。"""
        pass

    @abstractmethod
    async def save(self, name: str, playlist: CachedPlaylist) -> None:
        """写入缓存（存在则覆盖）。"""
        pass


class CatalogSnapshotStore(ABC):
    """对外发布的 Catalog 快照。

    publish 必须原子替换：读者只会看到完整的旧快照或完整的新快照。
    """

    @abstractmethod
    async def get_catalog(self) -> Catalog | None:
        pass

    @abstractmethod
    async def get_probe_candidates(self) -> list[Channel]:
        """返回未经健康过滤的频道集合，供探测器轮询。"""
        pass

    @abstractmethod
    async def publish(self, catalog: Catalog, probe_candidates: list[Channel]) -> None:
        pass
