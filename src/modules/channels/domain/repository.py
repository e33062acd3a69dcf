"""Channel health repository interfaces.

实现类需将底层存储异常转换为 StoreError。
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from src.modules.channels.domain.entities import ChannelHealthRecord


class ChannelHealthRepository(ABC):
    """频道健康记录存储。"""

    @abstractmethod
    async def upsert_many(self, records: list[ChannelHealthRecord]) -> None:
        """按 ID 创建或更新（后写覆盖）。"""
        pass

    @abstractmethod
    async def get_offline_ids(self, channel_ids: Iterable[str]) -> set[str]:
        """返回给定 ID 中状态为 offline 的子集。"""
        pass


class ProbeCursorStore(ABC):
    """探测采样游标，跨周期推进。"""

    @abstractmethod
    async def get(self) -> int:
        pass

    @abstractmethod
    async def set(self, cursor: int) -> None:
        pass
