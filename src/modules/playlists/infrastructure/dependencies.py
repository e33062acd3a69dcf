"""Playlist module dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.infrastructure.database.session import get_db_session
from src.core.infrastructure.redis import RedisClient, get_redis_client
from src.modules.channels.infrastructure.mappers import ChannelHealthMapper
from src.modules.channels.infrastructure.repositories import (
    PostgreSQLChannelHealthRepository,
)
from src.modules.playlists.application.refresh_service import CatalogRefreshService
from src.modules.playlists.infrastructure.fetcher import HttpSourceFetcher
from src.modules.playlists.infrastructure.mappers import PlaylistSourceMapper
from src.modules.playlists.infrastructure.repositories import (
    PostgreSQLSourceRepository,
    RedisCatalogSnapshotStore,
    RedisPlaylistCacheRepository,
)


def build_catalog_refresh_service(
    session: AsyncSession,
    redis_client: RedisClient,
) -> CatalogRefreshService:
    """组装刷新服务（HTTP 接口与 Celery 任务共用）。"""
    return CatalogRefreshService(
        source_repository=PostgreSQLSourceRepository(session, PlaylistSourceMapper()),
        fetcher=HttpSourceFetcher(),
        cache_repository=RedisPlaylistCacheRepository(redis_client),
        health_repository=PostgreSQLChannelHealthRepository(
            session, ChannelHealthMapper()
        ),
    )


async def get_catalog_refresh_service(
    session: AsyncSession = Depends(get_db_session),
    redis_client: RedisClient = Depends(get_redis_client),
) -> CatalogRefreshService:
    return build_catalog_refresh_service(session, redis_client)


async def get_catalog_snapshot_store(
    redis_client: RedisClient = Depends(get_redis_client),
) -> RedisCatalogSnapshotStore:
    return RedisCatalogSnapshotStore(redis_client)
