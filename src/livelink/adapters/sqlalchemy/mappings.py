"""SQLAlchemy mapping metadata for the livelink domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)

from livelink.domain.model import (
    BroadcastSession,
    CandidateObservation,
    Entitlement,
    ReadinessStatus,
    Recording,
    RecordingCandidate,
    RecordingSource,
    SessionStatus,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class ObservationSetType(TypeDecorator[frozenset[CandidateObservation]]):
    """Store candidate observations as a sorted JSON list of ``[source, event_type]``."""

    impl = String
    cache_ok = True

    def process_bind_param(
        self, value: frozenset[CandidateObservation] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return json.dumps([])
        payload = [[str(item.source), item.event_type] for item in sorted(value)]
        return json.dumps(payload)

    def process_result_value(
        self, value: str | None, dialect: Dialect
    ) -> frozenset[CandidateObservation]:
        _ = dialect
        if value is None:
            return frozenset()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return frozenset()
        items = cast(list[Any], loaded)
        observations: set[CandidateObservation] = set()
        for item in items:
            if isinstance(item, list) and len(cast(list[Any], item)) == 2:
                source, event_type = cast(list[str], item)
                observations.add(
                    CandidateObservation(source=RecordingSource(source), event_type=event_type)
                )
        return frozenset(observations)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Tables ----------------------------------------------------------------------

# external_asset_id is intentionally not unique: racing first-time inserts are
# tolerated and reads converge on the most recently created row.
recording_table = Table(
    "recording",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("external_asset_id", String, nullable=False),
    Column("title", String, nullable=False),
    Column("description", String, nullable=True),
    Column("status", Enum(ReadinessStatus, native_enum=False), nullable=False),
    Column("playback_id", String, nullable=True),
    Column("playback_url", String, nullable=True),
    Column("duration_seconds", Float, nullable=True),
    Column("visibility", String, nullable=True),
    Column("uploaded_by", String, nullable=True),
    Column("owner_id", String, nullable=True),
    Column("linked_session_id", UUIDColumnType, nullable=True),
    Column("provider", String, nullable=True),
    Column("view_count", Integer, nullable=False, default=0),
    Column("heart_count", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_recording_external_asset_id", "external_asset_id", "created_at"),
)

broadcast_session_table = Table(
    "broadcast_session",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("external_stream_id", String, nullable=True),
    Column("owner_id", String, nullable=True),
    Column("title", String, nullable=True),
    Column("description", String, nullable=True),
    Column("status", Enum(SessionStatus, native_enum=False), nullable=False),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("ended_at", UTCDateTime(), nullable=True),
    Column("recording_id", UUIDColumnType, nullable=True),
    Column("recording_asset_id", String, nullable=True),
    Column("recording_source", Enum(RecordingSource, native_enum=False), nullable=True),
    Column("recording_linked_at", UTCDateTime(), nullable=True),
    Index("ix_broadcast_session_external_stream_id", "external_stream_id"),
    Index("ix_broadcast_session_owner_status", "owner_id", "status"),
)

recording_candidate_table = Table(
    "recording_candidate",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("external_asset_id", String, nullable=False),
    Column("observations", ObservationSetType(), nullable=False),
    Column("first_seen_at", UTCDateTime(), nullable=False),
    Column("last_seen_at", UTCDateTime(), nullable=False),
    Column("last_correlation_id", String, nullable=True),
    Column("observation_count", Integer, nullable=False, default=0),
    UniqueConstraint("external_asset_id", name="uq_recording_candidate_external_asset_id"),
)

entitlement_table = Table(
    "entitlement",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("user_id", String, nullable=False),
    Column("recording_id", UUIDColumnType, nullable=True),
    Column("session_id", UUIDColumnType, nullable=True),
    Column("granted_at", UTCDateTime(), nullable=False),
    Column("granted_by", String, nullable=True),
    UniqueConstraint("user_id", "recording_id", name="uq_entitlement_user_recording"),
    UniqueConstraint("user_id", "session_id", name="uq_entitlement_user_session"),
    CheckConstraint(
        "(recording_id IS NULL) != (session_id IS NULL)",
        name="single_target",
    ),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Recording, recording_table)
    mapper_registry.map_imperatively(BroadcastSession, broadcast_session_table)
    mapper_registry.map_imperatively(RecordingCandidate, recording_candidate_table)
    mapper_registry.map_imperatively(Entitlement, entitlement_table)

    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
