"""Append-only diagnostic log of every inbound recording fact."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from livelink.domain.model import RecordingCandidate

if TYPE_CHECKING:
    from datetime import datetime

    from livelink.domain.model import EventType, ExternalAssetId, RecordingSource
    from livelink.domain.ports import RecordingCandidateRepository


@dataclass(slots=True)
class CandidateTracker:
    """Idempotent per-asset upsert of observed ``(source, event_type)`` pairs."""

    candidates: RecordingCandidateRepository

    def record(
        self,
        external_asset_id: ExternalAssetId,
        source: RecordingSource,
        event_type: EventType,
        *,
        correlation_id: str | None,
        observed_at: datetime,
    ) -> RecordingCandidate:
        candidate = self.candidates.get_by_external_asset_id(external_asset_id)
        if candidate is None:
            candidate = RecordingCandidate(
                external_asset_id=external_asset_id,
                first_seen_at=observed_at,
                last_seen_at=observed_at,
            )
            self.candidates.add(candidate)
        candidate.observe(
            source,
            event_type,
            correlation_id=correlation_id,
            observed_at=observed_at,
        )
        return candidate

    def history(self, external_asset_id: ExternalAssetId) -> RecordingCandidate | None:
        return self.candidates.get_by_external_asset_id(external_asset_id)
