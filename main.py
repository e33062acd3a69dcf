"""channelSentry Backend - 直播频道目录聚合与健康监测入口。"""

import sentry_sdk
from fastapi import FastAPI
from fastapi.concurrency import asynccontextmanager
from fastapi.routing import APIRoute
from loguru import logger
from starlette.middleware.cors import CORSMiddleware

from src.core.config import settings
from src.core.domain.exceptions import DomainException
from src.core.infrastructure.database.session import check_db_health, init_db
from src.core.infrastructure.health import overall_status
from src.core.infrastructure.logging import setup_logging
from src.core.infrastructure.redis import redis_client
from src.core.interfaces.http.exceptions import (
    domain_exception_handler,
    global_exception_handler,
)
from src.core.interfaces.http.routers import api_router
from src.modules.playlists.application import dependencies as playlists_app_deps
from src.modules.playlists.infrastructure import dependencies as playlists_infra_deps

APP_VERSION = "0.1.0"


def operation_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}" if route.tags else route.name


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.1,
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    logger.info(f"Starting channelSentry backend ({settings.ENVIRONMENT})")
    await init_db()

    yield

    logger.info("Shutting down channelSentry backend")
    await redis_client.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=(
        "直播频道目录服务 - 多源抓取、格式解析、合并去重与频道健康监测\n\n"
        "- `GET /catalog`: 当前 Catalog 快照\n"
        "- `GET /catalog/playlist.m3u`: 以扩展 M3U 导出\n"
        "- `POST /catalog/refresh`: 立即刷新"
    ),
    version=APP_VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=None,
    root_path=settings.ROOTPATH,
    generate_unique_id_function=operation_id,
    lifespan=lifespan,
)

# application 层占位依赖 -> infrastructure 实现
app.dependency_overrides.update(
    {
        playlists_app_deps.get_catalog_refresh_service: (
            playlists_infra_deps.get_catalog_refresh_service
        ),
        playlists_app_deps.get_catalog_snapshot_store: (
            playlists_infra_deps.get_catalog_snapshot_store
        ),
    }
)

app.add_exception_handler(DomainException, domain_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["health"])
async def health_check():
    """组件健康状态。

    - healthy: PostgreSQL 与 Redis 均正常
    - degraded: Redis 异常（缓存 / 快照降级，刷新仍可用）
    - unhealthy: 数据库异常
    """
    database = await check_db_health()
    redis = await redis_client.health_check()

    return {
        "status": overall_status(database, redis),
        "environment": settings.ENVIRONMENT,
        "version": APP_VERSION,
        "components": {
            "database": database.to_dict(),
            "redis": redis.to_dict(),
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.SERVER_PORT,
        reload=settings.ENVIRONMENT == "local",
    )
