"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import select

from livelink.adapters.sqlalchemy.mappings import (
    broadcast_session_table,
    entitlement_table,
    recording_candidate_table,
    recording_table,
)
from livelink.domain.model import (
    BroadcastSession,
    Entitlement,
    Recording,
    RecordingCandidate,
    SessionStatus,
)

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.orm import Session

    from livelink.domain.model import ExternalAssetId, ExternalStreamId, UserId


class SqlAlchemyRecordingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Recording) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> Recording | None:
        return self.session.get(Recording, entity_id)

    def latest_by_external_asset_id(self, external_asset_id: ExternalAssetId) -> Recording | None:
        stmt = (
            select(Recording)
            .where(recording_table.c.external_asset_id == external_asset_id)
            .order_by(recording_table.c.created_at.desc(), recording_table.c.id.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_by_external_asset_id(self, external_asset_id: ExternalAssetId) -> list[Recording]:
        stmt = (
            select(Recording)
            .where(recording_table.c.external_asset_id == external_asset_id)
            .order_by(recording_table.c.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemySessionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: BroadcastSession) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> BroadcastSession | None:
        return self.session.get(BroadcastSession, entity_id)

    def list_by_external_stream_id(
        self, external_stream_id: ExternalStreamId
    ) -> list[BroadcastSession]:
        stmt = (
            select(BroadcastSession)
            .where(broadcast_session_table.c.external_stream_id == external_stream_id)
            .order_by(broadcast_session_table.c.started_at.desc())
        )
        return list(self.session.execute(stmt).scalars())

    def list_active(self, *, owner_id: UserId | None = None) -> list[BroadcastSession]:
        stmt = select(BroadcastSession).where(
            broadcast_session_table.c.status == SessionStatus.ACTIVE
        )
        if owner_id is not None:
            stmt = stmt.where(broadcast_session_table.c.owner_id == owner_id)
        stmt = stmt.order_by(broadcast_session_table.c.started_at.desc())
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyRecordingCandidateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: RecordingCandidate) -> None:
        self.session.add(entity)

    def get_by_external_asset_id(
        self, external_asset_id: ExternalAssetId
    ) -> RecordingCandidate | None:
        stmt = select(RecordingCandidate).where(
            recording_candidate_table.c.external_asset_id == external_asset_id
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyEntitlementRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Entitlement) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> Entitlement | None:
        return self.session.get(Entitlement, entity_id)

    def find(
        self,
        user_id: UserId,
        *,
        recording_id: UUID | None = None,
        session_id: UUID | None = None,
    ) -> Entitlement | None:
        stmt = select(Entitlement).where(entitlement_table.c.user_id == user_id)
        if recording_id is not None:
            stmt = stmt.where(entitlement_table.c.recording_id == recording_id)
        if session_id is not None:
            stmt = stmt.where(entitlement_table.c.session_id == session_id)
        return self.session.execute(stmt.limit(1)).scalar_one_or_none()

    def list_for_user(self, user_id: UserId) -> list[Entitlement]:
        stmt = (
            select(Entitlement)
            .where(entitlement_table.c.user_id == user_id)
            .order_by(entitlement_table.c.granted_at)
        )
        return list(self.session.execute(stmt).scalars())

    def remove(self, entity: Entitlement) -> None:
        self.session.delete(entity)


if TYPE_CHECKING:
    from livelink.domain.ports.persistence import (
        EntitlementRepository,
        RecordingCandidateRepository,
        RecordingRepository,
        SessionRepository,
    )

    _session_stub = cast("Session", object())
    _recording_repo: RecordingRepository = SqlAlchemyRecordingRepository(_session_stub)
    _session_repo: SessionRepository = SqlAlchemySessionRepository(_session_stub)
    _candidate_repo: RecordingCandidateRepository = SqlAlchemyRecordingCandidateRepository(
        _session_stub
    )
    _entitlement_repo: EntitlementRepository = SqlAlchemyEntitlementRepository(_session_stub)
