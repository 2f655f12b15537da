"""Broadcast session lifecycle and stream-to-session matching."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from livelink.domain.model import BroadcastSession, utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from livelink.domain.model import Clock, ExternalStreamId, Principal
    from livelink.domain.ports import SessionRepository

log = logging.getLogger(__name__)


def _ensure_aware(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        raise ValueError("Session timestamps must include timezone information")
    return value.astimezone(UTC)


def start_session(
    sessions: SessionRepository,
    principal: Principal,
    *,
    external_stream_id: ExternalStreamId | None = None,
    title: str | None = None,
    description: str | None = None,
    started_at: datetime | None = None,
    clock: Clock = utcnow,
) -> BroadcastSession:
    """Open a new active session for ``principal``.

    Any other active session of the same owner is ended first; an owner
    broadcasts at most once at a time.
    """

    at = _ensure_aware(started_at) or clock()
    for previous in sessions.list_active(owner_id=principal.user_id):
        if previous.end(at):
            log.info(
                "Ended stale session %s for owner %s before starting a new one",
                previous.id,
                principal.user_id,
            )

    session = BroadcastSession(
        external_stream_id=external_stream_id,
        owner_id=principal.user_id,
        title=title,
        description=description,
        started_at=at,
    )
    sessions.add(session)
    return session


def end_session(
    sessions: SessionRepository,
    session_id: UUID,
    *,
    ended_at: datetime | None = None,
    clock: Clock = utcnow,
) -> BroadcastSession | None:
    """Mark a session ended; repeated calls keep the first ``ended_at``."""

    session = sessions.get(session_id)
    if session is None:
        return None
    if not session.end(_ensure_aware(ended_at) or clock()):
        log.debug("Session %s already ended at %s", session.id, session.ended_at)
    return session


@dataclass(frozen=True, slots=True)
class SessionMatch:
    session: BroadcastSession | None
    candidates: tuple[BroadcastSession, ...] = ()
    ambiguous: bool = False


def match_session_for_stream(
    sessions: Iterable[BroadcastSession],
    *,
    observed_at: datetime | None = None,
    grace: timedelta,
) -> SessionMatch:
    """Pick the session a provider stream report most likely belongs to.

    A stream key may be reused across broadcasts, so several sessions can share
    one external stream id. Sessions whose window ``[started_at, ended_at +
    grace]`` contains ``observed_at`` qualify (all of them when no timestamp is
    known); unlinked sessions are preferred over linked ones. When several
    equally good candidates have overlapping windows the match is ambiguous and
    no session is returned, so a wrong link is never proposed.
    """

    observed = _ensure_aware(observed_at)
    pool = list(sessions)
    if observed is not None:
        pool = [session for session in pool if session.window_contains(observed, grace=grace)]
    if not pool:
        return SessionMatch(session=None)

    unlinked = [session for session in pool if session.recording_id is None]
    best = unlinked or pool
    best.sort(key=lambda session: session.started_at, reverse=True)
    candidates = tuple(best)

    if any(_windows_overlap(best[0], other, grace=grace) for other in best[1:]):
        log.warning(
            "Ambiguous session match among %s candidates: %s",
            len(best),
            ", ".join(str(session.id) for session in best),
        )
        return SessionMatch(session=None, candidates=candidates, ambiguous=True)
    return SessionMatch(session=best[0], candidates=candidates)


def _window_end(session: BroadcastSession, grace: timedelta) -> datetime | None:
    if session.ended_at is None:
        return None
    return session.ended_at + grace


def _windows_overlap(left: BroadcastSession, right: BroadcastSession, *, grace: timedelta) -> bool:
    left_end = _window_end(left, grace)
    right_end = _window_end(right, grace)
    left_before_right_ends = right_end is None or left.started_at <= right_end
    right_before_left_ends = left_end is None or right.started_at <= left_end
    return left_before_right_ends and right_before_left_ends


__all__ = ["SessionMatch", "end_session", "match_session_for_stream", "start_session"]
