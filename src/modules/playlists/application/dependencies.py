"""Playlist module application dependencies."""

from typing import NoReturn

from src.modules.playlists.application.refresh_service import CatalogRefreshService
from src.modules.playlists.domain.repository import CatalogSnapshotStore


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_catalog_refresh_service() -> CatalogRefreshService:
    _missing_dependency("CatalogRefreshService")


async def get_catalog_snapshot_store() -> CatalogSnapshotStore:
    _missing_dependency("CatalogSnapshotStore")
