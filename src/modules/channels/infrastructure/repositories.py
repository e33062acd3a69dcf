"""Channel health repository implementations."""

from collections.abc import Iterable

from loguru import logger
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from src.core.domain.exceptions import StoreError
from src.core.infrastructure.redis import REDIS_STORE_ERRORS, RedisClient, RedisKeys
from src.modules.channels.domain.entities import ChannelHealthRecord, ChannelStatus
from src.modules.channels.domain.repository import (
    ChannelHealthRepository,
    ProbeCursorStore,
)
from src.modules.channels.infrastructure.mappers import ChannelHealthMapper
from src.modules.channels.infrastructure.models import ChannelHealthModel


class PostgreSQLChannelHealthRepository(ChannelHealthRepository):
    """PostgreSQL channel health repository implementation."""

    def __init__(self, session: AsyncSession, mapper: ChannelHealthMapper):
        self.session = session
        self.mapper = mapper

    async def upsert_many(self, records: list[ChannelHealthRecord]) -> None:
        """批量 upsert。

        使用 PostgreSQL INSERT ... ON CONFLICT (id) DO UPDATE，同一 ID 后写覆盖。
        """
        if not records:
            return

        # 同一批次内重复 ID 会让 ON CONFLICT 报错，保留最后一条
        latest = {record.id: record for record in records}
        values = self.mapper.to_rows(latest.values())

        stmt = pg_insert(ChannelHealthModel).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "status": stmt.excluded.status,
                "title": stmt.excluded.title,
                "stream_url": stmt.excluded.stream_url,
                "thumbnail_url": stmt.excluded.thumbnail_url,
                "last_checked": stmt.excluded.last_checked,
                "updated_at": stmt.excluded.updated_at,
                "is_deleted": False,
            },
        )

        try:
            await self.session.execute(stmt)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError("health", str(e)) from e

        logger.debug(f"Upserted {len(values)} channel health records")

    async def get_offline_ids(self, channel_ids: Iterable[str]) -> set[str]:
        ids = list(channel_ids)
        if not ids:
            return set()

        statement = select(ChannelHealthModel.id).where(
            col(ChannelHealthModel.id).in_(ids),
            ChannelHealthModel.status == ChannelStatus.OFFLINE,
            col(ChannelHealthModel.is_deleted).is_(False),
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise StoreError("health", str(e)) from e
        return set(result.scalars().all())


class RedisProbeCursorStore(ProbeCursorStore):
    """Redis 探测游标（probe:cursor）。"""

    def __init__(self, redis_client: RedisClient):
        self.redis = redis_client

    async def get(self) -> int:
        try:
            value = await self.redis.get(RedisKeys.PROBE_CURSOR_KEY)
        except REDIS_STORE_ERRORS as e:
            raise StoreError("probe_cursor", str(e)) from e
        try:
            return max(int(value), 0) if value is not None else 0
        except ValueError:
            logger.warning(f"Invalid probe cursor value {value!r}, resetting")
            return 0

    async def set(self, cursor: int) -> None:
        try:
            await self.redis.set(RedisKeys.PROBE_CURSOR_KEY, str(cursor))
        except REDIS_STORE_ERRORS as e:
            raise StoreError("probe_cursor", str(e)) from e
