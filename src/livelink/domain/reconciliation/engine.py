"""Reconciliation core: merge one provenance-tagged fact into storage.

Each call is one read-merge-write against the repositories of the caller's
unit of work. Nothing here locks; safety comes from idempotent merge rules,
monotonic fields and source precedence, so the prescribed recovery from a
storage failure is to repeat the identical call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from livelink.domain.model import LinkOutcome, UpsertAction, utcnow

from .candidates import CandidateTracker
from .facts import RecordingFact, RecordingFacts, UpsertResult, new_correlation_id
from .link import LinkResolver
from .merge import apply_merge_plan, build_recording, plan_recording_merge
from .status import normalize_status
from .trace import TraceLogger

if TYPE_CHECKING:
    from uuid import UUID

    from livelink.domain.model import (
        Clock,
        ConflictKind,
        EventType,
        ExternalAssetId,
        Principal,
        RecordingSource,
    )
    from livelink.domain.ports import ReconciliationRepositories


class ReconciliationPolicy(Protocol):
    """Deployment-level knobs the core needs; satisfied by ``ReconciliationConfig``."""

    @property
    def provider(self) -> str: ...

    @property
    def default_visibility(self) -> str: ...

    def playback_url(self, playback_id: str | None) -> str | None: ...


@dataclass(slots=True)
class ReconciliationEngine:
    repositories: ReconciliationRepositories
    policy: ReconciliationPolicy
    clock: Clock = utcnow
    trace: TraceLogger = field(default_factory=TraceLogger)

    def upsert(
        self,
        source: RecordingSource,
        external_asset_id: ExternalAssetId,
        facts: RecordingFacts | None = None,
        link_target: UUID | None = None,
        *,
        event_type: EventType | None = None,
        correlation_id: str | None = None,
        principal: Principal | None = None,
    ) -> UpsertResult:
        """Reconcile one report about ``external_asset_id``.

        Raises ``ValueError`` for a blank asset id. Storage errors propagate.
        """

        fact = RecordingFact(
            source=source,
            external_asset_id=external_asset_id,
            facts=facts or RecordingFacts(),
            link_target=link_target,
            event_type=event_type,
            correlation_id=correlation_id or new_correlation_id(),
        )
        return self.reconcile(fact, principal=principal)

    def reconcile(self, fact: RecordingFact, *, principal: Principal | None = None) -> UpsertResult:
        at = self.clock()
        repositories = self.repositories
        self.trace(
            "recording.upsert_entry",
            trace_id=fact.correlation_id,
            source=fact.source,
            asset_id=fact.external_asset_id,
            link_target=fact.link_target,
            status_raw=fact.facts.status,
            status=normalize_status(fact.facts.status),
            playback_id=fact.facts.playback_id,
        )

        conflicts: list[ConflictKind] = []
        existing = repositories.recordings.latest_by_external_asset_id(fact.external_asset_id)
        if existing is None:
            recording = build_recording(
                fact,
                provider=self.policy.provider,
                playback_url=self.policy.playback_url,
                default_visibility=self.policy.default_visibility,
                owner_id=principal.user_id if principal else None,
                at=at,
            )
            repositories.recordings.add(recording)
            inserted, changed = True, True
        else:
            recording = existing
            plan = plan_recording_merge(
                existing,
                fact.facts,
                fact.source,
                provider=self.policy.provider,
                playback_url=self.policy.playback_url,
            )
            for conflict in plan.conflicts:
                self.trace.warning(
                    "recording.playback_conflict",
                    trace_id=fact.correlation_id,
                    recording_id=existing.id,
                    asset_id=fact.external_asset_id,
                    existing=conflict.existing,
                    incoming=conflict.incoming,
                    source=fact.source,
                )
                conflicts.append(conflict.kind)
            apply_merge_plan(existing, plan, at=at)
            inserted, changed = False, plan.changed

        link_outcome = LinkOutcome.NOT_REQUESTED
        if fact.link_target is not None:
            resolver = LinkResolver(repositories.sessions, repositories.recordings, self.trace)
            link = resolver.link(
                fact.link_target,
                recording,
                fact.external_asset_id,
                fact.source,
                at=at,
                correlation_id=fact.correlation_id,
            )
            link_outcome = link.outcome
            conflicts.extend(link.conflicts)
            if link.recording_changed and not inserted:
                recording.touch(at)
                changed = True

        CandidateTracker(repositories.candidates).record(
            fact.external_asset_id,
            fact.source,
            fact.resolved_event_type,
            correlation_id=fact.correlation_id,
            observed_at=at,
        )

        result = UpsertResult(
            recording_id=recording.id,
            action=_action(inserted=inserted, changed=changed),
            link_outcome=link_outcome,
            correlation_id=fact.correlation_id,
            conflicts=tuple(conflicts),
        )
        self.trace(
            "recording.upsert_result",
            trace_id=fact.correlation_id,
            recording_id=result.recording_id,
            action=result.action,
            link_outcome=result.link_outcome,
            conflicts=result.conflicts,
            status=recording.status,
        )
        return result


def _action(*, inserted: bool, changed: bool) -> UpsertAction:
    if inserted:
        return UpsertAction.INSERTED
    if changed:
        return UpsertAction.UPDATED
    return UpsertAction.UNCHANGED
