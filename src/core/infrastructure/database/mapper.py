"""Domain object <-> table model conversion."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlmodel import SQLModel

E = TypeVar("E")
M = TypeVar("M", bound=SQLModel)


class BaseMapper(ABC, Generic[E, M]):
    """领域对象与表模型之间的转换。"""

    @abstractmethod
    def to_domain(self, model: M) -> E: ...

    @abstractmethod
    def to_model(self, entity: E) -> M: ...

    def to_domain_list(self, models: Iterable[M]) -> list[E]:
        return [self.to_domain(model) for model in models]

    def to_rows(self, entities: Iterable[E]) -> list[dict[str, Any]]:
        """转换为批量 INSERT 使用的列字典（包含审计字段的默认值）。"""
        return [self.to_model(entity).model_dump() for entity in entities]
