"""
pytest 配置和共享 fixtures。

测试分层：
- unit/: 单元测试（不依赖外部服务，HTTP 使用 httpx.MockTransport）

使用方法：
    # 运行所有测试
    uv run pytest

    # 只运行单元测试
    uv run pytest tests/unit/

    # 运行带覆盖率
    uv run pytest --cov=src --cov-report=html
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings
from src.modules.playlists.domain.catalog import build_catalog
from src.modules.playlists.domain.entities import Catalog, Channel

# ============================================
# 配置 Fixtures
# ============================================


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    """测试环境配置。"""
    return Settings(
        ENVIRONMENT="local",
        POSTGRES_SERVER="localhost",
        POSTGRES_PORT=5432,
        POSTGRES_USER="postgres",
        POSTGRES_PASSWORD="postgres",
        POSTGRES_DB="channelsentry_test",
        REDIS_URL="redis://localhost:6379/1",  # 使用 DB 1 隔离测试
        PLAYLIST_RELAY_URLS=["https://relay.test/?url={url}"],
        DEFAULT_PLAYLIST_URLS=["https://default.test/index.m3u"],
    )


# ============================================
# 数据库 Fixtures
# ============================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """Mock 数据库会话（用于纯单元测试）。"""
    session = AsyncMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    return session


# ============================================
# Redis Fixtures
# ============================================


@pytest.fixture
def mock_redis_client() -> MagicMock:
    """Mock Redis 客户端。"""
    from src.core.infrastructure.redis.client import RedisClient

    client = MagicMock(spec=RedisClient)
    client.ping = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.get_json = AsyncMock(return_value=None)
    client.set_json = AsyncMock(return_value=True)
    client.set_many_json = AsyncMock(return_value=None)
    return client


# ============================================
# 领域对象 Fixtures
# ============================================


SAMPLE_M3U = """#EXTM3U
#EXTINF:-1 tvg-id="news1" tvg-logo="https://logo.test/news1.png" group-title="News",News One
https://stream.test/news1.m3u8
#EXTINF:-1 tvg-logo="https://logo.test/sport1.png" group-title="Sports",Sport One
https://stream.test/sport1.m3u8
#EXTINF:-1,No Group Channel
https://stream.test/plain.m3u8
"""


@pytest.fixture
def sample_m3u() -> str:
    """示例扩展 M3U 播放列表（3 个频道，3 个分类）。"""
    return SAMPLE_M3U


def make_channel(
    channel_id: str,
    stream_url: str,
    name: str | None = None,
    group: str = "News",
    logo_url: str | None = None,
) -> Channel:
    """构造测试频道。"""
    return Channel(
        id=channel_id,
        name=name or channel_id,
        logo_url=logo_url,
        group=group,
        stream_url=stream_url,
    )


def make_catalog(*channels: Channel) -> Catalog:
    """由频道列表构造 Catalog。"""
    return build_catalog(channels)


@pytest.fixture
def sample_catalog() -> Catalog:
    """示例 Catalog（3 个频道，2 个分类）。"""
    return make_catalog(
        make_channel("a", "https://stream.test/a.m3u8", group="News"),
        make_channel("b", "https://stream.test/b.m3u8", group="Sports"),
        make_channel("c", "https://stream.test/c.m3u8", group="News"),
    )


# ============================================
# API Fixtures
# ============================================


@pytest.fixture
def snapshot_store():
    """进程内 Catalog 快照存储。"""
    from src.modules.playlists.infrastructure.repositories import (
        InMemoryCatalogSnapshotStore,
    )

    return InMemoryCatalogSnapshotStore()


@pytest.fixture
def refresh_service() -> MagicMock:
    """Mock CatalogRefreshService（refresh_with_report 由用例设置）。"""
    from src.modules.playlists.application.refresh_service import (
        CatalogRefreshService,
    )

    service = MagicMock(spec=CatalogRefreshService)
    service.refresh_with_report = AsyncMock()
    return service


@pytest.fixture
async def async_client(
    snapshot_store, refresh_service
) -> AsyncGenerator[AsyncClient, None]:
    """异步 HTTP 客户端（用于 API 测试）。"""
    from main import app
    from src.modules.playlists.application import dependencies as playlists_deps

    original_overrides = dict(app.dependency_overrides)

    # 覆盖依赖
    app.dependency_overrides[playlists_deps.get_catalog_snapshot_store] = (
        lambda: snapshot_store
    )
    app.dependency_overrides[playlists_deps.get_catalog_refresh_service] = (
        lambda: refresh_service
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    # 恢复依赖覆盖
    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
