"""Catalog 刷新服务。

协调源配置读取、并发抓取、格式解析、合并去重、缓存回退与健康过滤。

降级顺序：
1. 已配置的源（按 priority 升序，全部并发抓取，成功结果全部合并）
2. 内置默认源
3. 原始播放列表缓存
4. 内置演示数据

refresh() 永远返回非空 Catalog，抓取 / 解析 / 存储失败都不会向调用方抛出。
"""

import asyncio
import hashlib
import time
from dataclasses import dataclass, field

from loguru import logger

from src.core.config import settings
from src.core.domain.exceptions import StoreError
from src.core.infrastructure.logging import BusinessEvents
from src.modules.channels.domain.repository import ChannelHealthRepository
from src.modules.playlists.domain.catalog import (
    exclude_channels,
    merge_catalogs,
    namespace_channel_ids,
)
from src.modules.playlists.domain.demo import demo_catalog
from src.modules.playlists.domain.entities import (
    CachedPlaylist,
    Catalog,
    CatalogOrigin,
    Channel,
)
from src.modules.playlists.domain.exceptions import (
    PlaylistFetchError,
    PlaylistParseError,
)
from src.modules.playlists.domain.fetcher import FetchedPlaylist, SourceFetcher
from src.modules.playlists.domain.formats import decode_payload
from src.modules.playlists.domain.repository import (
    PlaylistCacheRepository,
    SourceRepository,
)
from src.modules.playlists.infrastructure.parsers import parse_playlist


def source_key(source_url: str) -> str:
    """源地址的短哈希，用作频道 ID 命名空间。"""
    return hashlib.sha1(source_url.encode("utf-8")).hexdigest()[:8]


@dataclass
class SourceOutcome:
    """单个源的抓取 + 解析结果。"""

    source_url: str
    fetched: FetchedPlaylist | None = None
    catalog: Catalog | None = None
    error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.catalog is not None


@dataclass(frozen=True)
class CatalogRefreshReport:
    """一次刷新的结果与统计。"""

    catalog: Catalog
    origin: CatalogOrigin
    # 未经健康过滤的合并结果，供探测器轮询（offline 频道也需要被重新探测）
    probe_candidates: tuple[Channel, ...] = ()
    sources_ok: int = 0
    sources_failed: int = 0
    filtered_offline: int = 0
    duration_ms: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        """是否使用了缓存或演示数据。"""
        return self.origin in (CatalogOrigin.CACHE, CatalogOrigin.DEMO)


class CatalogRefreshService:
    """Catalog 刷新服务。

    所有外部协作者（源配置、抓取器、缓存、健康记录）通过构造函数注入。
    """

    def __init__(
        self,
        source_repository: SourceRepository,
        fetcher: SourceFetcher,
        cache_repository: PlaylistCacheRepository,
        health_repository: ChannelHealthRepository,
        default_source_urls: list[str] | None = None,
        cache_key: str | None = None,
    ):
        self.source_repository = source_repository
        self.fetcher = fetcher
        self.cache_repository = cache_repository
        self.health_repository = health_repository
        self.default_source_urls = (
            list(default_source_urls)
            if default_source_urls is not None
            else settings.DEFAULT_PLAYLIST_URLS
        )
        self.cache_key = cache_key or settings.PLAYLIST_CACHE_KEY

    async def refresh(self) -> Catalog:
        """刷新并返回过滤后的 Catalog（保证非空）。"""
        report = await self.refresh_with_report()
        return report.catalog

    async def refresh_with_report(self) -> CatalogRefreshReport:
        start_time = time.time()

        source_urls = await self._load_source_urls()
        outcomes = await self._fetch_all(source_urls)
        origin = CatalogOrigin.LIVE

        if not any(outcome.is_success for outcome in outcomes):
            if source_urls:
                logger.warning("All configured playlist sources failed, trying defaults")
            origin = CatalogOrigin.DEFAULT
            outcomes += await self._fetch_all(self.default_source_urls)

        succeeded = [outcome for outcome in outcomes if outcome.is_success]
        errors = [outcome.error for outcome in outcomes if outcome.error]

        if succeeded:
            await self._write_cache(succeeded[0])
            merged = merge_catalogs([outcome.catalog for outcome in succeeded])
        else:
            cached = await self._load_from_cache()
            if cached is not None:
                origin = CatalogOrigin.CACHE
                # 缓存载荷同样走去重与 ID 冲突处理
                merged = merge_catalogs([cached])
                BusinessEvents.feature_degraded(
                    feature="playlist_cache",
                    reason="all live sources failed",
                )
            else:
                origin = CatalogOrigin.DEMO
                merged = demo_catalog()
                BusinessEvents.feature_degraded(
                    feature="demo_catalog",
                    reason="all live sources failed and cache is unavailable",
                )

        catalog, filtered_offline = await self._filter_offline(merged)
        duration_ms = int((time.time() - start_time) * 1000)

        report = CatalogRefreshReport(
            catalog=catalog,
            origin=origin,
            probe_candidates=merged.all_channels,
            sources_ok=len(succeeded),
            sources_failed=len(outcomes) - len(succeeded),
            filtered_offline=filtered_offline,
            duration_ms=duration_ms,
            errors=errors,
        )

        BusinessEvents.catalog_refreshed(
            origin=origin.value,
            channel_count=len(catalog.all_channels),
            category_count=len(catalog.categories),
            sources_ok=report.sources_ok,
            sources_failed=report.sources_failed,
            filtered_offline=filtered_offline,
            duration_ms=duration_ms,
        )
        logger.info(
            f"Catalog refreshed from {origin}: {len(catalog.all_channels)} channels, "
            f"{len(catalog.categories)} categories ({duration_ms}ms)"
        )
        return report

    async def _load_source_urls(self) -> list[str]:
        try:
            sources = await self.source_repository.list_active()
        except StoreError as e:
            logger.warning(f"Failed to load playlist sources: {e.message}")
            BusinessEvents.feature_degraded(feature="source_store", reason=e.reason)
            return []

        ordered = sorted(
            (source for source in sources if source.active),
            key=lambda source: source.priority,
        )
        return [source.url for source in ordered]

    async def _fetch_all(self, source_urls: list[str]) -> list[SourceOutcome]:
        """并发抓取，结果保持输入（优先级）顺序。"""
        if not source_urls:
            return []
        return list(await asyncio.gather(*(self._fetch_one(url) for url in source_urls)))

    async def _fetch_one(self, source_url: str) -> SourceOutcome:
        try:
            fetched = await self.fetcher.fetch(source_url)
        except PlaylistFetchError as e:
            BusinessEvents.source_fetch_failed(
                source_url=source_url,
                error=e.message,
                attempts=len(e.attempts),
            )
            return SourceOutcome(source_url=source_url, error=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error fetching {source_url}: {e}")
            return SourceOutcome(source_url=source_url, error=f"Error: {e}")

        try:
            catalog = parse_playlist(fetched.content, fetched.content_type)
        except PlaylistParseError as e:
            logger.warning(f"Failed to parse playlist from {source_url}: {e.message}")
            BusinessEvents.source_fetch_failed(source_url=source_url, error=e.message)
            return SourceOutcome(source_url=source_url, fetched=fetched, error=e.message)

        return SourceOutcome(
            source_url=source_url,
            fetched=fetched,
            catalog=namespace_channel_ids(catalog, source_key(source_url)),
        )

    async def _write_cache(self, outcome: SourceOutcome) -> None:
        """缓存优先级最高的成功载荷。"""
        if outcome.fetched is None:
            return
        playlist = CachedPlaylist(
            content=decode_payload(outcome.fetched.content),
            content_type=outcome.fetched.content_type,
            source_url=outcome.source_url,
        )
        try:
            await self.cache_repository.save(self.cache_key, playlist)
        except StoreError as e:
            logger.warning(f"Failed to write playlist cache: {e.message}")

    async def _load_from_cache(self) -> Catalog | None:
        try:
            cached = await self.cache_repository.get(self.cache_key)
        except StoreError as e:
            logger.warning(f"Failed to read playlist cache: {e.message}")
            return None
        if cached is None:
            logger.info(f"Playlist cache '{self.cache_key}' is empty")
            return None

        try:
            catalog = parse_playlist(cached.content, cached.content_type)
        except PlaylistParseError as e:
            logger.warning(f"Cached playlist could not be parsed: {e.message}")
            return None

        if cached.source_url:
            # 与在线抓取时的 ID 保持一致，健康记录才能对上
            catalog = namespace_channel_ids(catalog, source_key(cached.source_url))
        return catalog

    async def _filter_offline(self, catalog: Catalog) -> tuple[Catalog, int]:
        try:
            offline_ids = await self.health_repository.get_offline_ids(
                catalog.channel_ids
            )
        except StoreError as e:
            logger.warning(f"Health store unavailable, skipping filter: {e.message}")
            return catalog, 0

        if not offline_ids:
            return catalog, 0

        filtered = exclude_channels(catalog, offline_ids)
        if filtered.is_empty:
            BusinessEvents.feature_degraded(
                feature="health_filter",
                reason="every channel is offline, returning unfiltered catalog",
            )
            return catalog, 0

        removed = len(catalog.all_channels) - len(filtered.all_channels)
        logger.info(f"Excluded {removed} offline channels from catalog")
        return filtered, removed
