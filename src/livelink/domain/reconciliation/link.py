"""Session/recording link resolution.

A link has two halves: ``BroadcastSession.recording_*`` on the session side and
``Recording.linked_session_id`` on the recording side. Decisions about each half
are pure functions over the current state; ``LinkResolver`` loads the records,
asks for decisions and applies them.

Precedence: the end action carries the exact session id and overrides any
earlier claim. Webhook deliveries only fill empty slots and report a conflict
instead of overwriting. When in doubt the resolver leaves the pair unlinked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from livelink.domain.model import ConflictKind, LinkOutcome, RecordingSource, SessionLink

from .trace import TraceLogger

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from livelink.domain.model import BroadcastSession, ExternalAssetId, Recording
    from livelink.domain.ports import RecordingRepository, SessionRepository


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionLinkDecision:
    outcome: LinkOutcome
    link: SessionLink | None = None
    conflict: ConflictKind | None = None
    displaced_recording_id: UUID | None = None
    updated_fields: tuple[str, ...] = ()


class BackReferenceAction(StrEnum):
    SET = "set"
    UNCHANGED = "unchanged"
    OVERRIDE = "override"
    CONFLICT = "conflict"


@dataclass(frozen=True, slots=True, kw_only=True)
class BackReferenceDecision:
    action: BackReferenceAction
    displaced_session_id: UUID | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class LinkResult:
    outcome: LinkOutcome
    conflicts: tuple[ConflictKind, ...] = ()
    recording_changed: bool = False


def decide_session_link(
    session: BroadcastSession | None,
    *,
    recording_id: UUID,
    external_asset_id: ExternalAssetId,
    source: RecordingSource,
    at: datetime,
) -> SessionLinkDecision:
    """Decide how the session side of a link should change."""

    if session is None:
        return SessionLinkDecision(outcome=LinkOutcome.SESSION_NOT_FOUND)

    current = session.link
    authoritative = source is RecordingSource.END_ACTION
    displaced: UUID | None = None

    if current.recording_id is not None and current.recording_id != recording_id:
        if not authoritative:
            return SessionLinkDecision(
                outcome=LinkOutcome.CONFLICT,
                conflict=ConflictKind.SESSION_LINK,
            )
        displaced = current.recording_id
    elif (
        current.recording_asset_id is not None
        and current.recording_asset_id != external_asset_id
        and not authoritative
    ):
        return SessionLinkDecision(
            outcome=LinkOutcome.CONFLICT,
            conflict=ConflictKind.SESSION_ASSET,
        )

    if authoritative:
        unchanged = (
            current.recording_id == recording_id
            and current.recording_asset_id == external_asset_id
            and current.source == source
        )
        proposed = SessionLink(
            recording_id=recording_id,
            recording_asset_id=external_asset_id,
            source=source,
            linked_at=current.linked_at if unchanged and current.linked_at else at,
        )
    else:
        proposed = SessionLink(
            recording_id=current.recording_id or recording_id,
            recording_asset_id=current.recording_asset_id or external_asset_id,
            source=current.source or source,
            linked_at=current.linked_at or at,
        )

    updated = _changed_fields(current, proposed)
    if not updated:
        return SessionLinkDecision(outcome=LinkOutcome.ALREADY_LINKED)
    return SessionLinkDecision(
        outcome=LinkOutcome.LINKED,
        link=proposed,
        displaced_recording_id=displaced,
        updated_fields=updated,
    )


def decide_recording_back_reference(
    recording: Recording,
    *,
    session_id: UUID,
    source: RecordingSource,
) -> BackReferenceDecision:
    """Decide how ``recording.linked_session_id`` should change."""

    current = recording.linked_session_id
    if current is None:
        return BackReferenceDecision(action=BackReferenceAction.SET)
    if current == session_id:
        return BackReferenceDecision(action=BackReferenceAction.UNCHANGED)
    if source is RecordingSource.END_ACTION:
        return BackReferenceDecision(
            action=BackReferenceAction.OVERRIDE,
            displaced_session_id=current,
        )
    return BackReferenceDecision(action=BackReferenceAction.CONFLICT)


def _changed_fields(current: SessionLink, proposed: SessionLink) -> tuple[str, ...]:
    names = ("recording_id", "recording_asset_id", "source", "linked_at")
    return tuple(name for name in names if getattr(current, name) != getattr(proposed, name))


@dataclass(slots=True)
class LinkResolver:
    """Apply link decisions to both halves inside the caller's unit of work."""

    sessions: SessionRepository
    recordings: RecordingRepository
    trace: TraceLogger = field(default_factory=TraceLogger)

    def link(
        self,
        session_id: UUID,
        recording: Recording,
        external_asset_id: ExternalAssetId,
        source: RecordingSource,
        *,
        at: datetime,
        correlation_id: str | None = None,
    ) -> LinkResult:
        back_reference = decide_recording_back_reference(
            recording,
            session_id=session_id,
            source=source,
        )
        if back_reference.action is BackReferenceAction.CONFLICT:
            self.trace.warning(
                "recording.link_recording_conflict",
                trace_id=correlation_id,
                recording_id=recording.id,
                existing_session_id=recording.linked_session_id,
                attempted_session_id=session_id,
                source=source,
            )
            return LinkResult(
                outcome=LinkOutcome.CONFLICT,
                conflicts=(ConflictKind.RECORDING_LINK,),
            )

        session = self.sessions.get(session_id)
        decision = decide_session_link(
            session,
            recording_id=recording.id,
            external_asset_id=external_asset_id,
            source=source,
            at=at,
        )

        if decision.outcome is LinkOutcome.CONFLICT:
            self.trace.warning(
                "recording.link_session_conflict",
                trace_id=correlation_id,
                session_id=session_id,
                conflict=decision.conflict,
                existing_recording_id=session.recording_id if session else None,
                existing_asset_id=session.recording_asset_id if session else None,
                attempted_recording_id=recording.id,
                attempted_asset_id=external_asset_id,
                source=source,
            )
            conflicts = (decision.conflict,) if decision.conflict else ()
            return LinkResult(outcome=LinkOutcome.CONFLICT, conflicts=conflicts)

        if session is None:
            self.trace(
                "recording.link_session_missing",
                trace_id=correlation_id,
                session_id=session_id,
                recording_id=recording.id,
                source=source,
            )
            # pending back reference; a redelivery completes it once the session exists
            pending = back_reference.action is BackReferenceAction.SET
            if pending:
                recording.linked_session_id = session_id
            return LinkResult(outcome=LinkOutcome.SESSION_NOT_FOUND, recording_changed=pending)

        if decision.displaced_recording_id is not None:
            self._release_recording(
                decision.displaced_recording_id, session, at=at, correlation_id=correlation_id
            )
        if decision.link is not None:
            session.apply_link(decision.link)
            self.trace(
                "recording.link_session_success",
                trace_id=correlation_id,
                session_id=session.id,
                recording_id=recording.id,
                asset_id=external_asset_id,
                updated_fields=decision.updated_fields,
                source=source,
            )

        recording_changed = False
        if back_reference.action is BackReferenceAction.OVERRIDE:
            self._release_session(
                back_reference.displaced_session_id, recording, correlation_id=correlation_id
            )
        if back_reference.action in (BackReferenceAction.SET, BackReferenceAction.OVERRIDE):
            recording.linked_session_id = session.id
            recording_changed = True

        return LinkResult(outcome=decision.outcome, recording_changed=recording_changed)

    def _release_recording(
        self,
        recording_id: UUID,
        session: BroadcastSession,
        *,
        at: datetime,
        correlation_id: str | None,
    ) -> None:
        """Clear a stale back reference, but only if it still names ``session``."""

        previous = self.recordings.get(recording_id)
        if previous is None or previous.linked_session_id != session.id:
            self.trace(
                "recording.old_recording_link_skip",
                trace_id=correlation_id,
                recording_id=recording_id,
                session_id=session.id,
                reason="recording_not_found" if previous is None else "points_elsewhere",
            )
            return
        previous.linked_session_id = None
        previous.touch(at)
        self.trace(
            "recording.old_recording_link_cleared",
            trace_id=correlation_id,
            recording_id=recording_id,
            session_id=session.id,
        )

    def _release_session(
        self,
        session_id: UUID | None,
        recording: Recording,
        *,
        correlation_id: str | None,
    ) -> None:
        """Clear a stale session link, but only if it still names ``recording``."""

        if session_id is None:
            return
        previous = self.sessions.get(session_id)
        if previous is None or previous.recording_id != recording.id:
            self.trace(
                "recording.old_session_link_skip",
                trace_id=correlation_id,
                session_id=session_id,
                recording_id=recording.id,
                reason="session_not_found" if previous is None else "points_elsewhere",
            )
            return
        previous.clear_link()
        self.trace(
            "recording.old_session_link_cleared",
            trace_id=correlation_id,
            session_id=session_id,
            recording_id=recording.id,
        )
