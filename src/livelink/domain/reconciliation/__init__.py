"""Recording reconciliation: status lattice, merge rules, linking and the core engine."""

from __future__ import annotations

from .candidates import CandidateTracker
from .engine import ReconciliationEngine, ReconciliationPolicy
from .facts import (
    END_ACTION_EVENT,
    WEBHOOK_ASSET_EVENT,
    RecordingFact,
    RecordingFacts,
    UpsertResult,
    new_correlation_id,
)
from .link import (
    BackReferenceAction,
    BackReferenceDecision,
    LinkResolver,
    LinkResult,
    SessionLinkDecision,
    decide_recording_back_reference,
    decide_session_link,
)
from .merge import (
    FieldConflict,
    MergePlan,
    PlaybackUrlBuilder,
    apply_merge_plan,
    build_recording,
    plan_recording_merge,
)
from .status import DEFAULT_STATUS, STATUS_RANK, normalize_status, promote, rank, should_promote
from .trace import TraceLogger

__all__ = [
    "DEFAULT_STATUS",
    "END_ACTION_EVENT",
    "STATUS_RANK",
    "WEBHOOK_ASSET_EVENT",
    "BackReferenceAction",
    "BackReferenceDecision",
    "CandidateTracker",
    "FieldConflict",
    "LinkResolver",
    "LinkResult",
    "MergePlan",
    "PlaybackUrlBuilder",
    "ReconciliationEngine",
    "ReconciliationPolicy",
    "RecordingFact",
    "RecordingFacts",
    "SessionLinkDecision",
    "TraceLogger",
    "UpsertResult",
    "apply_merge_plan",
    "build_recording",
    "decide_recording_back_reference",
    "decide_session_link",
    "new_correlation_id",
    "normalize_status",
    "plan_recording_merge",
    "promote",
    "rank",
    "should_promote",
]
