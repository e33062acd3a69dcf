"""PostgreSQL 连接与会话。

- get_db_session: FastAPI 依赖，整个请求处于一个事务中
- get_async_session: Celery 任务使用，由调用方显式 commit
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.config import settings
from src.core.infrastructure.health import ComponentHealth, HealthStatus

async_engine = create_async_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    echo=False,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=5,
)

async_session_factory = async_sessionmaker(
    async_engine,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        async with session.begin():
            yield session


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """任务内使用的会话；异常时回滚。

    Usage:
        async with get_async_session() as session:
            ...
            await session.commit()
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """启动时确认数据库可连接。"""
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Failed to connect to database: {e}")
        raise
    logger.info("Database connection established")


async def check_db_health() -> ComponentHealth:
    start_time = time.perf_counter()
    try:
        async with async_engine.connect() as conn:
            version = (await conn.execute(text("SHOW server_version"))).scalar()
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        return ComponentHealth(status=HealthStatus.ERROR, error=str(e))

    return ComponentHealth(
        status=HealthStatus.OK,
        version=str(version) if version else None,
        latency_ms=int((time.perf_counter() - start_time) * 1000),
    )
