from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, cast

import pytest

from livelink.domain.entitlements import EntitlementBundler
from livelink.domain.model import (
    CandidateObservation,
    ConflictKind,
    LinkOutcome,
    Principal,
    ReadinessStatus,
    Recording,
    RecordingSource,
    UpsertAction,
)
from livelink.domain.reconciliation import RecordingFacts, TraceLogger
from tests.helpers.reconciliation import (
    FakeRecordingRepository,
    make_engine,
    make_repositories,
    make_session,
)

if TYPE_CHECKING:
    from livelink.domain.ports import ReconciliationRepositories


def _recordings(repositories: ReconciliationRepositories) -> list[Recording]:
    return cast(FakeRecordingRepository, repositories.recordings).items


def test_blank_asset_id_is_rejected() -> None:
    engine = make_engine()

    with pytest.raises(ValueError, match="external_asset_id"):
        engine.upsert(RecordingSource.WEBHOOK, "  ")


def test_first_fact_inserts_recording() -> None:
    repositories = make_repositories()
    engine = make_engine(repositories)

    result = engine.upsert(
        RecordingSource.WEBHOOK,
        "a1",
        RecordingFacts(title="Stream Recording", status="preparing", playback_id="p1"),
    )

    recording = repositories.recordings.get(result.recording_id)
    assert result.action is UpsertAction.INSERTED
    assert result.link_outcome is LinkOutcome.NOT_REQUESTED
    assert recording is not None
    assert recording.status is ReadinessStatus.PROCESSING
    assert recording.playback_url == "https://stream.mux.com/p1.m3u8"
    assert recording.provider == "mux"
    assert recording.visibility == "public"


def test_identical_call_is_unchanged_the_second_time() -> None:
    repositories = make_repositories()
    engine = make_engine(repositories)
    facts = RecordingFacts(title="Set", status="ready", playback_id="p1", duration_seconds=30.0)

    first = engine.upsert(RecordingSource.WEBHOOK, "a1", facts)
    snapshot = vars(repositories.recordings.get(first.recording_id)).copy()
    second = engine.upsert(RecordingSource.WEBHOOK, "a1", facts)

    assert second.action is UpsertAction.UNCHANGED
    assert second.recording_id == first.recording_id
    assert vars(repositories.recordings.get(first.recording_id)) == snapshot
    assert len(_recordings(repositories)) == 1


def test_identical_end_action_is_unchanged_the_second_time() -> None:
    repositories = make_repositories()
    session = make_session()
    repositories.sessions.add(session)
    engine = make_engine(repositories)
    principal = Principal(user_id="user-1")
    facts = RecordingFacts(title="Set 1", uploaded_by="user-1")

    engine.upsert(RecordingSource.END_ACTION, "a2", facts, session.id, principal=principal)
    linked_at = session.recording_linked_at
    second = engine.upsert(
        RecordingSource.END_ACTION, "a2", facts, session.id, principal=principal
    )

    assert second.action is UpsertAction.UNCHANGED
    assert second.link_outcome is LinkOutcome.ALREADY_LINKED
    assert session.recording_linked_at == linked_at


@pytest.mark.parametrize(
    "ordering",
    list(itertools.permutations(["waiting", "preparing", "ready"])),
)
def test_final_status_is_highest_rank_for_any_order(ordering: tuple[str, ...]) -> None:
    repositories = make_repositories()
    engine = make_engine(repositories)

    for status in ordering:
        engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(status=status))

    (recording,) = _recordings(repositories)
    assert recording.status is ReadinessStatus.READY


def test_scenario_webhook_lifecycle_with_stale_redelivery() -> None:
    repositories = make_repositories()
    engine = make_engine(repositories)

    created = engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(status="preparing"))
    recording = repositories.recordings.get(created.recording_id)
    assert recording is not None
    assert recording.status is ReadinessStatus.PROCESSING

    ready = engine.upsert(
        RecordingSource.WEBHOOK, "a1", RecordingFacts(status="ready", playback_id="p1")
    )
    assert ready.action is UpsertAction.UPDATED
    assert recording.status is ReadinessStatus.READY
    assert recording.playback_url == "https://stream.mux.com/p1.m3u8"

    stale = engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(status="preparing"))
    assert stale.action is UpsertAction.UNCHANGED
    assert recording.status is ReadinessStatus.READY


def test_scenario_end_action_without_prior_recording() -> None:
    repositories = make_repositories()
    session = make_session()
    repositories.sessions.add(session)
    engine = make_engine(repositories)

    result = engine.upsert(
        RecordingSource.END_ACTION,
        "a2",
        RecordingFacts(title="Set 1"),
        session.id,
        principal=Principal(user_id="user-1"),
    )

    recording = repositories.recordings.get(result.recording_id)
    assert result.action is UpsertAction.INSERTED
    assert result.link_outcome is LinkOutcome.LINKED
    assert recording is not None
    assert recording.status is ReadinessStatus.PROCESSING
    assert recording.title == "Set 1"
    assert recording.owner_id == "user-1"
    assert recording.linked_session_id == session.id
    assert session.recording_id == recording.id
    assert session.recording_source is RecordingSource.END_ACTION


def test_scenario_session_entitlement_covers_linked_recording() -> None:
    repositories = make_repositories()
    session = make_session()
    repositories.sessions.add(session)
    engine = make_engine(repositories)
    result = engine.upsert(
        RecordingSource.END_ACTION, "a2", RecordingFacts(title="Set 1"), session.id
    )
    bundler = EntitlementBundler(
        recordings=repositories.recordings,
        sessions=repositories.sessions,
        entitlements=repositories.entitlements,
    )
    bundler.grant("buyer", session_id=session.id)

    assert bundler.has_bundled_entitlement("buyer", recording_id=result.recording_id)


def test_end_action_wins_over_earlier_webhook_link() -> None:
    repositories = make_repositories()
    session = make_session()
    repositories.sessions.add(session)
    engine = make_engine(repositories)

    webhook = engine.upsert(RecordingSource.WEBHOOK, "A", RecordingFacts(), session.id)
    end_action = engine.upsert(RecordingSource.END_ACTION, "B", RecordingFacts(), session.id)

    old = repositories.recordings.get(webhook.recording_id)
    assert old is not None
    assert end_action.link_outcome is LinkOutcome.LINKED
    assert session.recording_asset_id == "B"
    assert session.recording_id == end_action.recording_id
    assert old.linked_session_id is None


def test_webhook_cannot_regress_end_action_link() -> None:
    repositories = make_repositories()
    session = make_session()
    repositories.sessions.add(session)
    engine = make_engine(repositories)

    engine.upsert(RecordingSource.END_ACTION, "A", RecordingFacts(), session.id)
    result = engine.upsert(RecordingSource.WEBHOOK, "B", RecordingFacts(), session.id)

    intruder = repositories.recordings.get(result.recording_id)
    assert intruder is not None
    assert result.link_outcome is LinkOutcome.CONFLICT
    assert ConflictKind.SESSION_LINK in result.conflicts
    assert session.recording_asset_id == "A"
    assert intruder.linked_session_id is None


def test_playback_conflict_is_reported_and_logged(caplog: pytest.LogCaptureFixture) -> None:
    repositories = make_repositories()
    engine = make_engine(repositories)
    engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(playback_id="p1"))

    with caplog.at_level(logging.WARNING):
        result = engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(playback_id="p2"))

    (recording,) = _recordings(repositories)
    assert result.conflicts == (ConflictKind.PLAYBACK,)
    assert recording.playback_id == "p1"
    assert "recording.playback_conflict" in caplog.text


def test_missing_session_reports_not_found_and_keeps_pending_reference() -> None:
    repositories = make_repositories()
    engine = make_engine(repositories)
    session = make_session()

    result = engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(), session.id)

    recording = repositories.recordings.get(result.recording_id)
    assert recording is not None
    assert result.link_outcome is LinkOutcome.SESSION_NOT_FOUND
    assert recording.linked_session_id == session.id

    repositories.sessions.add(session)
    redelivered = engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(), session.id)

    assert redelivered.link_outcome is LinkOutcome.LINKED
    assert session.recording_id == recording.id


def test_duplicate_records_converge_on_latest() -> None:
    repositories = make_repositories()
    engine = make_engine(repositories)
    engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts())
    # a racing first-time insert that slipped past the lookup
    racer = Recording(external_asset_id="a1", title="racer")
    repositories.recordings.add(racer)
    racer.created_at = engine.clock()

    first = engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(status="ready"))
    second = engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(duration_seconds=5.0))

    assert first.recording_id == racer.id
    assert second.recording_id == racer.id
    assert len(_recordings(repositories)) == 2


def test_every_call_is_recorded_as_candidate() -> None:
    repositories = make_repositories()
    session = make_session()
    repositories.sessions.add(session)
    engine = make_engine(repositories)

    engine.upsert(
        RecordingSource.WEBHOOK,
        "a1",
        RecordingFacts(),
        event_type="video.asset.created",
        correlation_id="trace-1",
    )
    engine.upsert(RecordingSource.WEBHOOK, "a1", RecordingFacts(), event_type="video.asset.created")
    engine.upsert(RecordingSource.END_ACTION, "a1", RecordingFacts(), session.id)

    candidate = repositories.candidates.get_by_external_asset_id("a1")
    assert candidate is not None
    assert candidate.observation_count == 3
    assert candidate.sorted_observations() == (
        CandidateObservation(RecordingSource.END_ACTION, "broadcast.ended"),
        CandidateObservation(RecordingSource.WEBHOOK, "video.asset.created"),
    )
    assert candidate.first_seen_at < candidate.last_seen_at


def test_trace_entries_are_emitted_when_enabled(caplog: pytest.LogCaptureFixture) -> None:
    engine = make_engine()
    engine.trace = TraceLogger(enabled=True)

    with caplog.at_level(logging.INFO):
        result = engine.upsert(RecordingSource.WEBHOOK, "a1", correlation_id="trace-42")

    assert result.correlation_id == "trace-42"
    assert "recording.upsert_entry" in caplog.text
    assert "recording.upsert_result" in caplog.text
    assert "trace-42" in caplog.text
