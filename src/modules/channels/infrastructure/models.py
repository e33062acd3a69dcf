"""Channel health database models."""

from datetime import datetime

from sqlalchemy import DateTime, Enum, Text
from sqlmodel import Field

from src.core.infrastructure.database.base_model import TableBase
from src.modules.channels.domain.entities import ChannelStatus


class ChannelHealthModel(TableBase, table=True):
    """Channel health database model.

    主键即频道 ID，写入使用 INSERT ... ON CONFLICT (id) DO UPDATE。
    """

    __tablename__ = "channel_health"

    status: ChannelStatus = Field(
        sa_type=Enum(
            ChannelStatus,
            name="channelstatus",
            values_callable=lambda e: [i.value for i in e],
            create_constraint=False,
        ),
        nullable=False,
        index=True,
    )
    title: str | None = Field(default=None, nullable=True)
    stream_url: str | None = Field(default=None, sa_type=Text, nullable=True)
    thumbnail_url: str | None = Field(default=None, sa_type=Text, nullable=True)
    last_checked: datetime = Field(
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
