"""Diagnostic per-asset observation log."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from livelink.domain.model.entity import Entity, utcnow
from livelink.domain.model.enums import EntityType, RecordingSource

if TYPE_CHECKING:
    from livelink.domain.model.primitives import EventType, ExternalAssetId


@dataclass(frozen=True, slots=True, order=True)
class CandidateObservation:
    source: RecordingSource
    event_type: EventType


@dataclass(eq=False, kw_only=True)
class RecordingCandidate(Entity):
    """Every fact observed for one external asset, independent of its outcome.

    Never consulted for reconciliation decisions.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.RECORDING_CANDIDATE

    external_asset_id: ExternalAssetId
    observations: frozenset[CandidateObservation] = field(
        default_factory=frozenset["CandidateObservation"]
    )
    first_seen_at: datetime = field(default_factory=utcnow)
    last_seen_at: datetime = field(default_factory=utcnow)
    last_correlation_id: str | None = None
    observation_count: int = 0

    def observe(
        self,
        source: RecordingSource,
        event_type: EventType,
        *,
        correlation_id: str | None,
        observed_at: datetime,
    ) -> bool:
        """Record one observation. Returns whether the (source, event) pair was new."""

        observation = CandidateObservation(source=source, event_type=event_type)
        is_new = observation not in self.observations
        if is_new:
            # reassign so the ORM sees the change
            self.observations = self.observations | {observation}
        self.last_seen_at = observed_at
        self.last_correlation_id = correlation_id
        self.observation_count += 1
        return is_new

    def sorted_observations(self) -> tuple[CandidateObservation, ...]:
        return tuple(sorted(self.observations))
