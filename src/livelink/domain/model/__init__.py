"""Public domain model surface."""

from __future__ import annotations

from livelink.domain.model.candidate import CandidateObservation, RecordingCandidate
from livelink.domain.model.entitlement import Entitlement
from livelink.domain.model.entity import Clock, Entity, new_id, utcnow
from livelink.domain.model.enums import (
    ConflictKind,
    EntityType,
    LinkOutcome,
    ReadinessStatus,
    RecordingSource,
    SessionStatus,
    UpsertAction,
)
from livelink.domain.model.primitives import (
    EventType,
    ExternalAssetId,
    ExternalStreamId,
    PlaybackId,
    Principal,
    UserId,
)
from livelink.domain.model.recording import Recording
from livelink.domain.model.session import BroadcastSession, SessionLink

__all__ = [  # noqa: RUF022
    # base
    "Clock",
    "Entity",
    "new_id",
    "utcnow",
    # entities
    "Recording",
    "BroadcastSession",
    "SessionLink",
    "RecordingCandidate",
    "CandidateObservation",
    "Entitlement",
    # enums
    "ConflictKind",
    "EntityType",
    "LinkOutcome",
    "ReadinessStatus",
    "RecordingSource",
    "SessionStatus",
    "UpsertAction",
    # primitives
    "EventType",
    "ExternalAssetId",
    "ExternalStreamId",
    "PlaybackId",
    "Principal",
    "UserId",
]
