"""Playlist repository implementations.

- 源配置：PostgreSQL（只读）
- 原始播放列表缓存与 Catalog 快照：Redis

底层异常统一转换为 StoreError，由调用方决定如何降级。
"""

import json

from loguru import logger
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from src.core.domain.exceptions import StoreError
from src.core.infrastructure.redis import REDIS_STORE_ERRORS, RedisClient, RedisKeys
from src.modules.playlists.domain.entities import (
    CachedPlaylist,
    Catalog,
    Channel,
    SourceDescriptor,
)
from src.modules.playlists.domain.repository import (
    CatalogSnapshotStore,
    PlaylistCacheRepository,
    SourceRepository,
)
from src.modules.playlists.infrastructure.mappers import PlaylistSourceMapper
from src.modules.playlists.infrastructure.models import PlaylistSourceModel


class PostgreSQLSourceRepository(SourceRepository):
    """PostgreSQL playlist source repository implementation."""

    def __init__(self, session: AsyncSession, mapper: PlaylistSourceMapper):
        self.session = session
        self.mapper = mapper

    async def list_active(self) -> list[SourceDescriptor]:
        statement = (
            select(PlaylistSourceModel)
            .where(
                col(PlaylistSourceModel.active).is_(True),
                col(PlaylistSourceModel.is_deleted).is_(False),
            )
            .order_by(PlaylistSourceModel.priority, PlaylistSourceModel.created_at)
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise StoreError("source", str(e)) from e
        return self.mapper.to_domain_list(list(result.scalars().all()))


class RedisPlaylistCacheRepository(PlaylistCacheRepository):
    """Redis 原始播放列表缓存。

    Key: playlist:cache:{name}
    Value: {"content", "content_type", "source_url", "updated_at"}
    """

    def __init__(self, redis_client: RedisClient):
        self.redis = redis_client

    async def get(self, name: str) -> CachedPlaylist | None:
        try:
            payload = await self.redis.get_json(RedisKeys.playlist_cache(name))
        except REDIS_STORE_ERRORS as e:
            raise StoreError("cache", str(e)) from e
        except json.JSONDecodeError:
            logger.warning(f"Playlist cache entry '{name}' is not valid JSON, ignoring")
            return None

        if payload is None:
            return None
        try:
            return CachedPlaylist.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Playlist cache entry '{name}' is malformed: {e}")
            return None

    async def save(self, name: str, playlist: CachedPlaylist) -> None:
        try:
            await self.redis.set_json(
                RedisKeys.playlist_cache(name), playlist.model_dump(mode="json")
            )
        except REDIS_STORE_ERRORS as e:
            raise StoreError("cache", str(e)) from e


class RedisCatalogSnapshotStore(CatalogSnapshotStore):
    """Redis Catalog 快照，两份数据在同一个 MULTI/EXEC 事务中替换。"""

    def __init__(self, redis_client: RedisClient):
        self.redis = redis_client

    async def get_catalog(self) -> Catalog | None:
        payload = await self._load(RedisKeys.CATALOG_CURRENT_KEY)
        if payload is None:
            return None
        try:
            return Catalog.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Published catalog snapshot is malformed: {e}")
            return None

    async def get_probe_candidates(self) -> list[Channel]:
        payload = await self._load(RedisKeys.CATALOG_PROBE_CANDIDATES_KEY)
        if not isinstance(payload, list):
            return []
        channels: list[Channel] = []
        for record in payload:
            try:
                channels.append(Channel.model_validate(record))
            except ValidationError as e:
                logger.debug(f"Skipping malformed probe candidate: {e}")
        return channels

    async def publish(self, catalog: Catalog, probe_candidates: list[Channel]) -> None:
        try:
            await self.redis.set_many_json(
                {
                    RedisKeys.CATALOG_CURRENT_KEY: catalog.model_dump(mode="json"),
                    RedisKeys.CATALOG_PROBE_CANDIDATES_KEY: [
                        channel.model_dump(mode="json") for channel in probe_candidates
                    ],
                }
            )
        except REDIS_STORE_ERRORS as e:
            raise StoreError("catalog", str(e)) from e

    async def _load(self, key: str):
        try:
            return await self.redis.get_json(key)
        except REDIS_STORE_ERRORS as e:
            raise StoreError("catalog", str(e)) from e
        except json.JSONDecodeError:
            logger.warning(f"Snapshot key '{key}' is not valid JSON, ignoring")
            return None


class InMemoryCatalogSnapshotStore(CatalogSnapshotStore):
    """进程内快照，供测试与 API 用例替换 Redis 快照存储使用，未接入运行时依赖。

    catalog 与 probe_candidates 作为一个元组整体替换。
    """

    def __init__(self) -> None:
        self._snapshot: tuple[Catalog, tuple[Channel, ...]] | None = None

    async def get_catalog(self) -> Catalog | None:
        snapshot = self._snapshot
        return snapshot[0] if snapshot else None

    async def get_probe_candidates(self) -> list[Channel]:
        snapshot = self._snapshot
        return list(snapshot[1]) if snapshot else []

    async def publish(self, catalog: Catalog, probe_candidates: list[Channel]) -> None:
        self._snapshot = (catalog, tuple(probe_candidates))
