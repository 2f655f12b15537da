"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Typed-reference discriminator for persisted entities."""

    RECORDING = "recording"
    BROADCAST_SESSION = "broadcast_session"
    RECORDING_CANDIDATE = "recording_candidate"
    ENTITLEMENT = "entitlement"


class RecordingSource(StrEnum):
    """Provenance of an inbound recording fact.

    ``END_ACTION`` is synchronous and carries the exact session id, so it is
    authoritative. ``WEBHOOK`` deliveries are best-effort.
    """

    WEBHOOK = "webhook"
    END_ACTION = "end_action"


class ReadinessStatus(StrEnum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY = "ready"


class SessionStatus(StrEnum):
    ACTIVE = "active"
    ENDED = "ended"


class UpsertAction(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class LinkOutcome(StrEnum):
    NOT_REQUESTED = "not_requested"
    LINKED = "linked"
    ALREADY_LINKED = "already_linked"
    CONFLICT = "conflict"
    SESSION_NOT_FOUND = "session_not_found"


class ConflictKind(StrEnum):
    """Divergent claims detected while reconciling one call."""

    PLAYBACK = "playback"
    RECORDING_LINK = "recording_link"
    SESSION_LINK = "session_link"
    SESSION_ASSET = "session_asset"
