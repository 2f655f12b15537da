"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from livelink.domain.model import (
    BroadcastSession,
    Entitlement,
    Recording,
    RecordingCandidate,
)

if TYPE_CHECKING:
    from uuid import UUID

    from livelink.domain.model import ExternalAssetId, ExternalStreamId, UserId


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class RecordingRepository(Repository[Recording], Protocol):
    """Persistence contract for recordings."""

    def latest_by_external_asset_id(self, external_asset_id: ExternalAssetId) -> Recording | None:
        """Return the most recently created recording for the asset, if any."""
        ...

    def list_by_external_asset_id(
        self, external_asset_id: ExternalAssetId
    ) -> list[Recording]: ...


@runtime_checkable
class SessionRepository(Repository[BroadcastSession], Protocol):
    """Persistence contract for broadcast sessions."""

    def list_by_external_stream_id(
        self, external_stream_id: ExternalStreamId
    ) -> list[BroadcastSession]: ...

    def list_active(self, *, owner_id: UserId | None = None) -> list[BroadcastSession]: ...


@runtime_checkable
class RecordingCandidateRepository(Protocol):
    """Persistence contract for the diagnostic candidate log."""

    def add(self, entity: RecordingCandidate) -> None: ...

    def get_by_external_asset_id(
        self, external_asset_id: ExternalAssetId
    ) -> RecordingCandidate | None: ...


@runtime_checkable
class EntitlementRepository(Repository[Entitlement], Protocol):
    """Persistence contract for direct entitlements."""

    def find(
        self,
        user_id: UserId,
        *,
        recording_id: UUID | None = None,
        session_id: UUID | None = None,
    ) -> Entitlement | None: ...

    def list_for_user(self, user_id: UserId) -> list[Entitlement]: ...

    def remove(self, entity: Entitlement) -> None: ...
