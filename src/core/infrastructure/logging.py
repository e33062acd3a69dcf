"""日志配置。

- loguru: 诊断日志（控制台；非本地环境额外写按天滚动的文件）
- structlog: 业务事件（刷新结果、源失败、频道探测、降级），本地彩色输出，其它环境输出 JSON
"""

import logging
import sys
from typing import Any

import structlog
from loguru import logger

from src.core.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: str | None = None) -> None:
    """配置 loguru 与 structlog；API 进程与 Celery worker 启动时各调用一次。"""
    level = (level or settings.LOG_LEVEL).upper()
    is_local = settings.ENVIRONMENT == "local"

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=is_local)
    if not is_local:
        logger.add(
            "logs/channelsentry_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="14 days",
            level="INFO",
            format=FILE_FORMAT,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=True)
            if is_local
            else structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level, logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logger.info(f"Logging configured with level: {level}")


# ============================================================================
# 业务事件日志记录器
# ============================================================================


def get_business_logger() -> structlog.BoundLogger:
    """获取业务事件日志记录器。

    Usage:
        log = get_business_logger()
        log.info("catalog_published", channels=120, categories=8)
    """
    return structlog.get_logger("business")


class BusinessEvents:
    """业务事件日志助手类。

    Usage:
        BusinessEvents.catalog_refreshed(origin="live", channel_count=120, ...)
        BusinessEvents.channel_probed(channel_id="abc:channel-0", status="online")
    """

    _log = structlog.get_logger("business.events")

    @classmethod
    def catalog_refreshed(
        cls,
        origin: str,
        channel_count: int,
        category_count: int,
        sources_ok: int,
        sources_failed: int,
        filtered_offline: int,
        duration_ms: int,
        **extra: Any,
    ) -> None:
        """记录 Catalog 刷新完成事件。"""
        cls._log.info(
            "catalog_refreshed",
            event_type="refresh",
            origin=origin,
            channel_count=channel_count,
            category_count=category_count,
            sources_ok=sources_ok,
            sources_failed=sources_failed,
            filtered_offline=filtered_offline,
            duration_ms=duration_ms,
            **extra,
        )

    @classmethod
    def source_fetch_failed(
        cls,
        source_url: str,
        error: str,
        attempts: int | None = None,
        **extra: Any,
    ) -> None:
        """记录源抓取失败事件。"""
        cls._log.warning(
            "source_fetch_failed",
            event_type="ingest_error",
            source_url=source_url,
            error=error,
            attempts=attempts,
            **extra,
        )

    @classmethod
    def channel_probed(
        cls,
        channel_id: str,
        status: str,
        duration_ms: int,
        **extra: Any,
    ) -> None:
        """记录频道可达性探测事件。"""
        cls._log.info(
            "channel_probed",
            event_type="probe",
            channel_id=channel_id,
            status=status,
            duration_ms=duration_ms,
            **extra,
        )

    @classmethod
    def feature_degraded(
        cls,
        feature: str,
        reason: str,
        **extra: Any,
    ) -> None:
        """记录降级事件（使用缓存 / 演示数据、存储不可用等）。"""
        cls._log.warning(
            "feature_degraded",
            event_type="degradation",
            feature=feature,
            reason=reason,
            **extra,
        )
