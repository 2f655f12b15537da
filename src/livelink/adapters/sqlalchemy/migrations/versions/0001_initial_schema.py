"""initial_schema

Recordings, broadcast sessions, the recording candidate log and entitlements.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_READINESS_STATUS = sa.Enum(
    "UPLOADING", "PROCESSING", "READY", name="readinessstatus", native_enum=False
)
_SESSION_STATUS = sa.Enum("ACTIVE", "ENDED", name="sessionstatus", native_enum=False)
_RECORDING_SOURCE = sa.Enum("WEBHOOK", "END_ACTION", name="recordingsource", native_enum=False)


def upgrade() -> None:
    op.create_table(
        "recording",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("external_asset_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("status", _READINESS_STATUS, nullable=False),
        sa.Column("playback_id", sa.String(), nullable=True),
        sa.Column("playback_url", sa.String(), nullable=True),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("visibility", sa.String(), nullable=True),
        sa.Column("uploaded_by", sa.String(), nullable=True),
        sa.Column("owner_id", sa.String(), nullable=True),
        sa.Column("linked_session_id", sa.Uuid(), nullable=True),
        sa.Column("provider", sa.String(), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.Column("heart_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_recording")),
    )
    op.create_index(
        "ix_recording_external_asset_id",
        "recording",
        ["external_asset_id", "created_at"],
    )

    op.create_table(
        "broadcast_session",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("external_stream_id", sa.String(), nullable=True),
        sa.Column("owner_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("status", _SESSION_STATUS, nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recording_id", sa.Uuid(), nullable=True),
        sa.Column("recording_asset_id", sa.String(), nullable=True),
        sa.Column("recording_source", _RECORDING_SOURCE, nullable=True),
        sa.Column("recording_linked_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_broadcast_session")),
    )
    op.create_index(
        "ix_broadcast_session_external_stream_id",
        "broadcast_session",
        ["external_stream_id"],
    )
    op.create_index(
        "ix_broadcast_session_owner_status",
        "broadcast_session",
        ["owner_id", "status"],
    )

    op.create_table(
        "recording_candidate",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("external_asset_id", sa.String(), nullable=False),
        sa.Column("observations", sa.String(), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_correlation_id", sa.String(), nullable=True),
        sa.Column("observation_count", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_recording_candidate")),
        sa.UniqueConstraint(
            "external_asset_id", name="uq_recording_candidate_external_asset_id"
        ),
    )

    op.create_table(
        "entitlement",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("recording_id", sa.Uuid(), nullable=True),
        sa.Column("session_id", sa.Uuid(), nullable=True),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("granted_by", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_entitlement")),
        sa.UniqueConstraint("user_id", "recording_id", name="uq_entitlement_user_recording"),
        sa.UniqueConstraint("user_id", "session_id", name="uq_entitlement_user_session"),
        sa.CheckConstraint(
            "(recording_id IS NULL) != (session_id IS NULL)",
            name=op.f("ck_entitlement_single_target"),
        ),
    )


def downgrade() -> None:
    op.drop_table("entitlement")
    op.drop_table("recording_candidate")
    op.drop_index("ix_broadcast_session_owner_status", table_name="broadcast_session")
    op.drop_index("ix_broadcast_session_external_stream_id", table_name="broadcast_session")
    op.drop_table("broadcast_session")
    op.drop_index("ix_recording_external_asset_id", table_name="recording")
    op.drop_table("recording")
