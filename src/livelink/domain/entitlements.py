"""Access decisions that follow the session/recording link."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from livelink.domain.model import Entitlement, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from livelink.domain.model import UserId
    from livelink.domain.ports import (
        EntitlementRepository,
        RecordingRepository,
        SessionRepository,
    )

log = logging.getLogger(__name__)


def _require_one_target(recording_id: UUID | None, session_id: UUID | None) -> None:
    if (recording_id is None) == (session_id is None):
        raise ValueError("Exactly one of recording_id or session_id is required")


@dataclass(slots=True)
class EntitlementBundler:
    """Direct entitlements plus the bundled recording/session shortcut.

    A purchase of a live session also grants its recording and vice versa, but
    only once the link is confirmed from both sides. A half-written or
    conflicted link never grants anything beyond the direct entitlement.
    """

    recordings: RecordingRepository
    sessions: SessionRepository
    entitlements: EntitlementRepository

    def has_entitlement(
        self,
        user_id: UserId,
        *,
        recording_id: UUID | None = None,
        session_id: UUID | None = None,
    ) -> bool:
        _require_one_target(recording_id, session_id)
        found = self.entitlements.find(user_id, recording_id=recording_id, session_id=session_id)
        return found is not None

    def has_bundled_entitlement(
        self,
        user_id: UserId,
        *,
        recording_id: UUID | None = None,
        session_id: UUID | None = None,
    ) -> bool:
        if self.has_entitlement(user_id, recording_id=recording_id, session_id=session_id):
            return True

        if recording_id is not None:
            counterpart = self._linked_session_id(recording_id)
            return counterpart is not None and self.has_entitlement(
                user_id, session_id=counterpart
            )
        if session_id is not None:
            counterpart = self._linked_recording_id(session_id)
            return counterpart is not None and self.has_entitlement(
                user_id, recording_id=counterpart
            )
        return False

    def grant(
        self,
        user_id: UserId,
        *,
        recording_id: UUID | None = None,
        session_id: UUID | None = None,
        granted_by: str | None = None,
        granted_at: datetime | None = None,
    ) -> Entitlement:
        """Grant a direct entitlement; an existing grant is returned unchanged."""

        _require_one_target(recording_id, session_id)
        existing = self.entitlements.find(
            user_id, recording_id=recording_id, session_id=session_id
        )
        if existing is not None:
            return existing
        entitlement = Entitlement(
            user_id=user_id,
            recording_id=recording_id,
            session_id=session_id,
            granted_by=granted_by,
            granted_at=granted_at or utcnow(),
        )
        self.entitlements.add(entitlement)
        log.info(
            "Granted entitlement %s to %s (recording=%s, session=%s)",
            entitlement.id,
            user_id,
            recording_id,
            session_id,
        )
        return entitlement

    def revoke(
        self,
        user_id: UserId,
        *,
        recording_id: UUID | None = None,
        session_id: UUID | None = None,
    ) -> bool:
        _require_one_target(recording_id, session_id)
        existing = self.entitlements.find(
            user_id, recording_id=recording_id, session_id=session_id
        )
        if existing is None:
            return False
        self.entitlements.remove(existing)
        return True

    def entitlements_for_user(self, user_id: UserId) -> list[Entitlement]:
        return self.entitlements.list_for_user(user_id)

    def _linked_session_id(self, recording_id: UUID) -> UUID | None:
        recording = self.recordings.get(recording_id)
        if recording is None or recording.linked_session_id is None:
            return None
        session = self.sessions.get(recording.linked_session_id)
        if session is None or session.recording_id != recording.id:
            return None
        return session.id

    def _linked_recording_id(self, session_id: UUID) -> UUID | None:
        session = self.sessions.get(session_id)
        if session is None or session.recording_id is None:
            return None
        recording = self.recordings.get(session.recording_id)
        if recording is None or recording.linked_session_id != session.id:
            return None
        return recording.id


__all__ = ["EntitlementBundler"]
