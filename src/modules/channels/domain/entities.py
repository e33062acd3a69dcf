"""Channel health domain entities."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ChannelStatus(StrEnum):
    """频道可达性状态。"""

    ONLINE = "online"
    OFFLINE = "offline"


class ChannelHealthRecord(BaseModel):
    """单个频道最近一次探测结果，以频道 ID 为键 upsert。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Channel ID")
    status: ChannelStatus
    title: str | None = None
    stream_url: str | None = None
    thumbnail_url: str | None = None
    last_checked: datetime = Field(default_factory=lambda: datetime.now(UTC))
