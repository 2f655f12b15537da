"""Inbound fact envelopes for the reconciliation core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

from livelink.domain.model import RecordingSource

if TYPE_CHECKING:
    from uuid import UUID

    from livelink.domain.model import (
        ConflictKind,
        EventType,
        ExternalAssetId,
        LinkOutcome,
        PlaybackId,
        ReadinessStatus,
        UpsertAction,
        UserId,
    )

WEBHOOK_ASSET_EVENT: EventType = "video.asset.ready"
END_ACTION_EVENT: EventType = "broadcast.ended"


def new_correlation_id() -> str:
    return uuid4().hex


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordingFacts:
    """Partial set of recording fields reported by one producer.

    ``None`` means "not reported", never "clear this field".
    """

    title: str | None = None
    description: str | None = None
    playback_id: PlaybackId | None = None
    duration_seconds: float | None = None
    status: str | ReadinessStatus | None = None
    visibility: str | None = None
    uploaded_by: UserId | None = None

    def __post_init__(self) -> None:
        if self.duration_seconds is not None and self.duration_seconds < 0:
            raise ValueError("duration_seconds must be non-negative")


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordingFact:
    """One provenance-tagged report about one external asset."""

    source: RecordingSource
    external_asset_id: ExternalAssetId
    facts: RecordingFacts = field(default_factory=RecordingFacts)
    link_target: UUID | None = None
    event_type: EventType | None = None
    correlation_id: str = field(default_factory=new_correlation_id)

    def __post_init__(self) -> None:
        if not self.external_asset_id or not self.external_asset_id.strip():
            raise ValueError("external_asset_id is required")

    @property
    def is_authoritative(self) -> bool:
        return self.source is RecordingSource.END_ACTION

    @property
    def resolved_event_type(self) -> EventType:
        if self.event_type:
            return self.event_type
        if self.is_authoritative:
            return END_ACTION_EVENT
        return WEBHOOK_ASSET_EVENT


@dataclass(frozen=True, slots=True, kw_only=True)
class UpsertResult:
    """Outcome of one reconciliation call."""

    recording_id: UUID
    action: UpsertAction
    link_outcome: LinkOutcome
    correlation_id: str
    conflicts: tuple[ConflictKind, ...] = ()
