"""Playlist database models."""

from sqlmodel import Field

from src.core.infrastructure.database.base_model import TableBase


class PlaylistSourceModel(TableBase, table=True):
    """Playlist source database model.

    由管理端维护，本服务只读。
    """

    __tablename__ = "playlist_sources"

    url: str = Field(nullable=False, unique=True, index=True)
    display_name: str = Field(nullable=False)
    priority: int = Field(default=0, nullable=False, index=True)
    active: bool = Field(default=True, nullable=False, index=True)
