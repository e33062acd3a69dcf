"""Playlist entity-model mappers."""

from src.core.infrastructure.database.mapper import BaseMapper
from src.modules.playlists.domain.entities import SourceDescriptor
from src.modules.playlists.infrastructure.models import PlaylistSourceModel


class PlaylistSourceMapper(BaseMapper[SourceDescriptor, PlaylistSourceModel]):
    """Playlist source entity-model mapper."""

    def to_domain(self, model: PlaylistSourceModel) -> SourceDescriptor:
        return SourceDescriptor(
            id=model.id,
            url=model.url,
            display_name=model.display_name,
            priority=model.priority,
            active=model.active,
        )

    def to_model(self, entity: SourceDescriptor) -> PlaylistSourceModel:
        model = PlaylistSourceModel(
            url=entity.url,
            display_name=entity.display_name,
            priority=entity.priority,
            active=entity.active,
        )
        if entity.id:
            model.id = entity.id
        return model
