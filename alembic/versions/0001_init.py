"""init playlist_sources and channel_health

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

# Enums
channel_status_enum = sa.Enum("online", "offline", name="channelstatus")


def upgrade() -> None:
    # Playlist sources table (maintained by the admin side, read-only here)
    op.create_table(
        "playlist_sources",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    op.create_index("ix_playlist_sources_url", "playlist_sources", ["url"], unique=True)
    op.create_index("ix_playlist_sources_priority", "playlist_sources", ["priority"])
    op.create_index("ix_playlist_sources_active", "playlist_sources", ["active"])

    # Channel health table (id = channel id, upsert target)
    op.create_table(
        "channel_health",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", channel_status_enum, nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("stream_url", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("last_checked", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_channel_health_status", "channel_health", ["status"])


def downgrade() -> None:
    op.drop_index("ix_channel_health_status", table_name="channel_health")
    op.drop_table("channel_health")
    channel_status_enum.drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_playlist_sources_active", table_name="playlist_sources")
    op.drop_index("ix_playlist_sources_priority", table_name="playlist_sources")
    op.drop_index("ix_playlist_sources_url", table_name="playlist_sources")
    op.drop_table("playlist_sources")
