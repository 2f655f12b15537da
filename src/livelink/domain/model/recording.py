"""Canonical recording of a finished, provider-hosted asset."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from livelink.domain.model.entity import Entity, utcnow
from livelink.domain.model.enums import EntityType, ReadinessStatus

if TYPE_CHECKING:
    from uuid import UUID

    from livelink.domain.model.primitives import ExternalAssetId, PlaybackId, UserId


@dataclass(eq=False, kw_only=True)
class Recording(Entity):
    """One recording per external asset id, eventually.

    ``external_asset_id`` is the idempotency key but is not unique in storage:
    two racing first-time reports may both insert. Lookups always pick the most
    recently created row so later calls converge on one record.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.RECORDING

    external_asset_id: ExternalAssetId
    title: str
    description: str | None = None
    status: ReadinessStatus = ReadinessStatus.PROCESSING
    playback_id: PlaybackId | None = None
    playback_url: str | None = None
    duration_seconds: float | None = None
    visibility: str | None = None
    uploaded_by: UserId | None = None
    owner_id: UserId | None = None
    linked_session_id: UUID | None = None
    provider: str | None = None

    view_count: int = 0
    heart_count: int = 0

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def touch(self, at: datetime | None = None) -> None:
        self.updated_at = at or utcnow()
