"""Catalog API 测试（依赖覆盖为进程内快照与 Mock 刷新服务）。"""

import pytest

from src.core.domain.exceptions import StoreError
from src.modules.playlists.application.refresh_service import CatalogRefreshReport
from src.modules.playlists.domain.demo import demo_catalog
from src.modules.playlists.domain.entities import CatalogOrigin
from src.modules.playlists.infrastructure.parsers import parse_playlist

pytestmark = pytest.mark.anyio

CATALOG_URL = "/api/v1/catalog"


def make_report(catalog, origin=CatalogOrigin.LIVE, **kwargs) -> CatalogRefreshReport:
    return CatalogRefreshReport(
        catalog=catalog,
        origin=origin,
        probe_candidates=catalog.all_channels,
        **kwargs,
    )


class TestGetCatalog:
    """GET /catalog 测试。"""

    async def test_returns_published_snapshot(
        self, async_client, snapshot_store, refresh_service, sample_catalog
    ):
        await snapshot_store.publish(sample_catalog, list(sample_catalog.all_channels))

        response = await async_client.get(CATALOG_URL)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [c["name"] for c in data["categories"]] == ["News", "Sports"]
        assert len(data["allChannels"]) == 3
        channel = data["allChannels"][0]
        assert set(channel) == {"id", "name", "logo", "group", "url"}
        assert channel["url"] == "https://stream.test/a.m3u8"
        refresh_service.refresh_with_report.assert_not_awaited()

    async def test_refreshes_inline_when_nothing_published(
        self, async_client, snapshot_store, refresh_service
    ):
        refresh_service.refresh_with_report.return_value = make_report(
            demo_catalog(), CatalogOrigin.DEMO
        )

        response = await async_client.get(CATALOG_URL)

        assert response.status_code == 200
        assert len(response.json()["data"]["allChannels"]) == 10
        refresh_service.refresh_with_report.assert_awaited_once()
        # 刷新结果被发布，后续请求直接读快照
        assert await snapshot_store.get_catalog() == demo_catalog()

    async def test_snapshot_store_failure_refreshes_inline(
        self, async_client, snapshot_store, refresh_service, sample_catalog, monkeypatch
    ):
        async def broken_get_catalog():
            raise StoreError("catalog", "connection refused")

        monkeypatch.setattr(snapshot_store, "get_catalog", broken_get_catalog)
        refresh_service.refresh_with_report.return_value = make_report(sample_catalog)

        response = await async_client.get(CATALOG_URL)

        assert response.status_code == 200
        assert len(response.json()["data"]["allChannels"]) == 3


class TestExportM3U:
    async def test_playlist_export(self, async_client, snapshot_store, sample_catalog):
        await snapshot_store.publish(sample_catalog, [])

        response = await async_client.get(f"{CATALOG_URL}/playlist.m3u")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("audio/x-mpegurl")
        assert response.text.startswith("#EXTM3U")
        reparsed = parse_playlist(response.text)
        assert len(reparsed.all_channels) == 3


class TestRefreshCatalog:
    """POST /catalog/refresh 测试。"""

    async def test_live_refresh(
        self, async_client, snapshot_store, refresh_service, sample_catalog
    ):
        refresh_service.refresh_with_report.return_value = make_report(
            sample_catalog, sources_ok=2, sources_failed=1, filtered_offline=4
        )

        response = await async_client.post(f"{CATALOG_URL}/refresh")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Catalog refreshed"
        data = body["data"]
        assert data["origin"] == "live"
        assert data["isDegraded"] is False
        assert data["sourcesOk"] == 2
        assert data["sourcesFailed"] == 1
        assert data["filteredOffline"] == 4
        assert len(data["catalog"]["allChannels"]) == 3
        assert await snapshot_store.get_catalog() == sample_catalog

    async def test_degraded_refresh(self, async_client, refresh_service):
        refresh_service.refresh_with_report.return_value = make_report(
            demo_catalog(), CatalogOrigin.DEMO, sources_failed=2
        )

        response = await async_client.post(f"{CATALOG_URL}/refresh")

        body = response.json()
        assert body["message"] == "Catalog refreshed using demo data"
        assert body["data"]["isDegraded"] is True
        assert body["data"]["origin"] == "demo"
