"""Playlist API routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from loguru import logger

from src.core.domain.exceptions import StoreError
from src.core.interfaces.http.response import ApiResponse
from src.modules.playlists.application.dependencies import (
    get_catalog_refresh_service,
    get_catalog_snapshot_store,
)
from src.modules.playlists.application.refresh_service import (
    CatalogRefreshReport,
    CatalogRefreshService,
)
from src.modules.playlists.domain.entities import Catalog
from src.modules.playlists.domain.repository import CatalogSnapshotStore
from src.modules.playlists.infrastructure.parsers import render_m3u
from src.modules.playlists.interfaces.schemas import (
    CatalogRefreshResponse,
    CatalogResponse,
)

router = APIRouter(prefix="/catalog", tags=["catalog"])

M3U_MEDIA_TYPE = "audio/x-mpegurl"


async def _publish(store: CatalogSnapshotStore, report: CatalogRefreshReport) -> None:
    try:
        await store.publish(report.catalog, list(report.probe_candidates))
    except StoreError as e:
        logger.warning(f"Failed to publish catalog snapshot: {e.message}")


async def _current_catalog(
    store: CatalogSnapshotStore,
    service: CatalogRefreshService,
) -> Catalog:
    """读取已发布快照；尚未发布（或快照存储不可用）时同步刷新一次。"""
    try:
        catalog = await store.get_catalog()
    except StoreError as e:
        logger.warning(f"Catalog snapshot unavailable, refreshing inline: {e.message}")
        catalog = None

    if catalog is not None and not catalog.is_empty:
        return catalog

    report = await service.refresh_with_report()
    await _publish(store, report)
    return report.catalog


@router.get(
    "",
    response_model=ApiResponse[CatalogResponse],
    summary="获取当前 Catalog",
)
async def get_catalog(
    store: CatalogSnapshotStore = Depends(get_catalog_snapshot_store),
    service: CatalogRefreshService = Depends(get_catalog_refresh_service),
) -> ApiResponse[CatalogResponse]:
    catalog = await _current_catalog(store, service)
    return ApiResponse.success(data=CatalogResponse.from_domain(catalog))


@router.get(
    "/playlist.m3u",
    response_class=PlainTextResponse,
    summary="以扩展 M3U 格式导出当前 Catalog",
)
async def export_m3u(
    store: CatalogSnapshotStore = Depends(get_catalog_snapshot_store),
    service: CatalogRefreshService = Depends(get_catalog_refresh_service),
) -> PlainTextResponse:
    catalog = await _current_catalog(store, service)
    return PlainTextResponse(render_m3u(catalog), media_type=M3U_MEDIA_TYPE)


@router.post(
    "/refresh",
    response_model=ApiResponse[CatalogRefreshResponse],
    summary="立即刷新 Catalog",
)
async def refresh_catalog(
    store: CatalogSnapshotStore = Depends(get_catalog_snapshot_store),
    service: CatalogRefreshService = Depends(get_catalog_refresh_service),
) -> ApiResponse[CatalogRefreshResponse]:
    report = await service.refresh_with_report()
    await _publish(store, report)

    message = "Catalog refreshed"
    if report.is_degraded:
        message = f"Catalog refreshed using {report.origin.value} data"

    return ApiResponse.success(
        data=CatalogRefreshResponse(
            catalog=CatalogResponse.from_domain(report.catalog),
            origin=report.origin,
            is_degraded=report.is_degraded,
            sources_ok=report.sources_ok,
            sources_failed=report.sources_failed,
            filtered_offline=report.filtered_offline,
        ),
        message=message,
    )
