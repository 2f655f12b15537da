"""Broadcast sessions and the link value they carry to a recording."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from livelink.domain.model.entity import Entity, utcnow
from livelink.domain.model.enums import EntityType, RecordingSource, SessionStatus

if TYPE_CHECKING:
    from datetime import timedelta
    from uuid import UUID

    from livelink.domain.model.primitives import ExternalAssetId, ExternalStreamId, UserId


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionLink:
    """Session-side half of the session/recording link.

    Fields may be partially filled: webhook deliveries only fill empty slots.
    """

    recording_id: UUID | None = None
    recording_asset_id: ExternalAssetId | None = None
    source: RecordingSource | None = None
    linked_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.recording_id is None
            and self.recording_asset_id is None
            and self.source is None
            and self.linked_at is None
        )


@dataclass(eq=False, kw_only=True)
class BroadcastSession(Entity):
    """One broadcast attempt, which may or may not yield a recording."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.BROADCAST_SESSION

    external_stream_id: ExternalStreamId | None = None
    owner_id: UserId | None = None
    title: str | None = None
    description: str | None = None
    status: SessionStatus = SessionStatus.ACTIVE
    started_at: datetime = field(default_factory=utcnow)
    ended_at: datetime | None = None

    recording_id: UUID | None = None
    recording_asset_id: ExternalAssetId | None = None
    recording_source: RecordingSource | None = None
    recording_linked_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    @property
    def link(self) -> SessionLink:
        return SessionLink(
            recording_id=self.recording_id,
            recording_asset_id=self.recording_asset_id,
            source=self.recording_source,
            linked_at=self.recording_linked_at,
        )

    def apply_link(self, link: SessionLink) -> None:
        self.recording_id = link.recording_id
        self.recording_asset_id = link.recording_asset_id
        self.recording_source = link.source
        self.recording_linked_at = link.linked_at

    def clear_link(self) -> None:
        self.apply_link(SessionLink())

    def end(self, at: datetime | None = None) -> bool:
        """Mark the session ended. Returns ``False`` when it already was."""

        if self.status is SessionStatus.ENDED:
            return False
        self.status = SessionStatus.ENDED
        self.ended_at = at or utcnow()
        return True

    def window_contains(self, observed_at: datetime, *, grace: timedelta) -> bool:
        """Whether ``observed_at`` falls inside the session's broadcast window."""

        if observed_at < self.started_at:
            return False
        if self.ended_at is None:
            return True
        return observed_at <= self.ended_at + grace
