"""Channel health entity-model mappers."""

from src.core.infrastructure.database.mapper import BaseMapper
from src.modules.channels.domain.entities import ChannelHealthRecord
from src.modules.channels.infrastructure.models import ChannelHealthModel


class ChannelHealthMapper(BaseMapper[ChannelHealthRecord, ChannelHealthModel]):
    """Channel health entity-model mapper."""

    def to_domain(self, model: ChannelHealthModel) -> ChannelHealthRecord:
        return ChannelHealthRecord(
            id=model.id,
            status=model.status,
            title=model.title,
            stream_url=model.stream_url,
            thumbnail_url=model.thumbnail_url,
            last_checked=model.last_checked,
        )

    def to_model(self, entity: ChannelHealthRecord) -> ChannelHealthModel:
        return ChannelHealthModel(
            id=entity.id,
            status=entity.status,
            title=entity.title,
            stream_url=entity.stream_url,
            thumbnail_url=entity.thumbnail_url,
            last_checked=entity.last_checked,
        )
