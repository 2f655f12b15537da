from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

from livelink.domain.model import (
    ConflictKind,
    LinkOutcome,
    Recording,
    RecordingSource,
    SessionLink,
)
from livelink.domain.reconciliation import (
    BackReferenceAction,
    LinkResolver,
    decide_recording_back_reference,
    decide_session_link,
)
from tests.helpers.reconciliation import (
    BASE_TIME,
    FakeRecordingRepository,
    FakeSessionRepository,
    make_session,
)

LATER = BASE_TIME + timedelta(minutes=5)


def _recording(asset_id: str = "a1") -> Recording:
    return Recording(external_asset_id=asset_id, title="Recording")


def _resolver() -> tuple[LinkResolver, FakeSessionRepository, FakeRecordingRepository]:
    sessions = FakeSessionRepository()
    recordings = FakeRecordingRepository()
    return LinkResolver(sessions=sessions, recordings=recordings), sessions, recordings


# Pure decisions ---------------------------------------------------------------


def test_missing_session_is_reported() -> None:
    decision = decide_session_link(
        None,
        recording_id=uuid4(),
        external_asset_id="a1",
        source=RecordingSource.END_ACTION,
        at=BASE_TIME,
    )

    assert decision.outcome is LinkOutcome.SESSION_NOT_FOUND
    assert decision.link is None


def test_webhook_fills_only_empty_slots() -> None:
    session = make_session()
    session.apply_link(SessionLink(recording_asset_id="a1"))
    recording_id = uuid4()

    decision = decide_session_link(
        session,
        recording_id=recording_id,
        external_asset_id="a1",
        source=RecordingSource.WEBHOOK,
        at=BASE_TIME,
    )

    assert decision.outcome is LinkOutcome.LINKED
    assert decision.link == SessionLink(
        recording_id=recording_id,
        recording_asset_id="a1",
        source=RecordingSource.WEBHOOK,
        linked_at=BASE_TIME,
    )
    assert "recording_asset_id" not in decision.updated_fields


def test_webhook_redelivery_is_already_linked() -> None:
    session = make_session()
    recording_id = uuid4()
    session.apply_link(
        SessionLink(
            recording_id=recording_id,
            recording_asset_id="a1",
            source=RecordingSource.WEBHOOK,
            linked_at=BASE_TIME,
        )
    )

    decision = decide_session_link(
        session,
        recording_id=recording_id,
        external_asset_id="a1",
        source=RecordingSource.WEBHOOK,
        at=LATER,
    )

    assert decision.outcome is LinkOutcome.ALREADY_LINKED
    assert decision.link is None


def test_webhook_cannot_replace_another_recording() -> None:
    session = make_session()
    session.apply_link(
        SessionLink(
            recording_id=uuid4(),
            recording_asset_id="a1",
            source=RecordingSource.END_ACTION,
            linked_at=BASE_TIME,
        )
    )

    decision = decide_session_link(
        session,
        recording_id=uuid4(),
        external_asset_id="b1",
        source=RecordingSource.WEBHOOK,
        at=LATER,
    )

    assert decision.outcome is LinkOutcome.CONFLICT
    assert decision.conflict is ConflictKind.SESSION_LINK


def test_webhook_with_different_asset_for_same_recording_conflicts() -> None:
    session = make_session()
    recording_id = uuid4()
    session.apply_link(SessionLink(recording_id=recording_id, recording_asset_id="a1"))

    decision = decide_session_link(
        session,
        recording_id=recording_id,
        external_asset_id="b1",
        source=RecordingSource.WEBHOOK,
        at=LATER,
    )

    assert decision.outcome is LinkOutcome.CONFLICT
    assert decision.conflict is ConflictKind.SESSION_ASSET


def test_end_action_with_different_asset_for_same_recording_replaces_asset() -> None:
    session = make_session()
    recording_id = uuid4()
    session.apply_link(
        SessionLink(
            recording_id=recording_id,
            recording_asset_id="a1",
            source=RecordingSource.WEBHOOK,
            linked_at=BASE_TIME,
        )
    )

    decision = decide_session_link(
        session,
        recording_id=recording_id,
        external_asset_id="b1",
        source=RecordingSource.END_ACTION,
        at=LATER,
    )

    assert decision.outcome is LinkOutcome.LINKED
    assert decision.conflict is None
    assert decision.link is not None
    assert decision.link.recording_asset_id == "b1"
    assert decision.displaced_recording_id is None


def test_end_action_overrides_and_reports_displaced_recording() -> None:
    session = make_session()
    previous = uuid4()
    session.apply_link(
        SessionLink(
            recording_id=previous,
            recording_asset_id="a1",
            source=RecordingSource.WEBHOOK,
            linked_at=BASE_TIME,
        )
    )
    incoming = uuid4()

    decision = decide_session_link(
        session,
        recording_id=incoming,
        external_asset_id="b1",
        source=RecordingSource.END_ACTION,
        at=LATER,
    )

    assert decision.outcome is LinkOutcome.LINKED
    assert decision.displaced_recording_id == previous
    assert decision.link == SessionLink(
        recording_id=incoming,
        recording_asset_id="b1",
        source=RecordingSource.END_ACTION,
        linked_at=LATER,
    )


def test_repeated_end_action_keeps_original_link_time() -> None:
    session = make_session()
    recording_id = uuid4()
    session.apply_link(
        SessionLink(
            recording_id=recording_id,
            recording_asset_id="a1",
            source=RecordingSource.END_ACTION,
            linked_at=BASE_TIME,
        )
    )

    decision = decide_session_link(
        session,
        recording_id=recording_id,
        external_asset_id="a1",
        source=RecordingSource.END_ACTION,
        at=LATER,
    )

    assert decision.outcome is LinkOutcome.ALREADY_LINKED


def test_back_reference_decisions() -> None:
    session_id = uuid4()
    empty = _recording()
    same = _recording()
    same.linked_session_id = session_id
    other = _recording()
    other_session = uuid4()
    other.linked_session_id = other_session

    assert (
        decide_recording_back_reference(
            empty, session_id=session_id, source=RecordingSource.WEBHOOK
        ).action
        is BackReferenceAction.SET
    )
    assert (
        decide_recording_back_reference(
            same, session_id=session_id, source=RecordingSource.WEBHOOK
        ).action
        is BackReferenceAction.UNCHANGED
    )
    assert (
        decide_recording_back_reference(
            other, session_id=session_id, source=RecordingSource.WEBHOOK
        ).action
        is BackReferenceAction.CONFLICT
    )
    override = decide_recording_back_reference(
        other, session_id=session_id, source=RecordingSource.END_ACTION
    )
    assert override.action is BackReferenceAction.OVERRIDE
    assert override.displaced_session_id == other_session


# Resolver ---------------------------------------------------------------------


def test_resolver_links_both_sides() -> None:
    resolver, sessions, recordings = _resolver()
    session = make_session()
    sessions.add(session)
    recording = _recording()
    recordings.add(recording)

    result = resolver.link(session.id, recording, "a1", RecordingSource.WEBHOOK, at=BASE_TIME)

    assert result.outcome is LinkOutcome.LINKED
    assert result.recording_changed
    assert session.recording_id == recording.id
    assert session.recording_asset_id == "a1"
    assert session.recording_source is RecordingSource.WEBHOOK
    assert recording.linked_session_id == session.id


def test_resolver_sets_pending_back_reference_for_missing_session() -> None:
    resolver, _, _ = _resolver()
    recording = _recording()
    session_id = uuid4()

    result = resolver.link(session_id, recording, "a1", RecordingSource.END_ACTION, at=BASE_TIME)

    assert result.outcome is LinkOutcome.SESSION_NOT_FOUND
    assert recording.linked_session_id == session_id


def test_resolver_leaves_everything_untouched_on_webhook_conflict() -> None:
    resolver, sessions, recordings = _resolver()
    session = make_session()
    sessions.add(session)
    owner = _recording("a1")
    recordings.add(owner)
    resolver.link(session.id, owner, "a1", RecordingSource.END_ACTION, at=BASE_TIME)
    intruder = _recording("b1")
    recordings.add(intruder)

    result = resolver.link(session.id, intruder, "b1", RecordingSource.WEBHOOK, at=LATER)

    assert result.outcome is LinkOutcome.CONFLICT
    assert result.conflicts == (ConflictKind.SESSION_LINK,)
    assert session.recording_id == owner.id
    assert session.recording_asset_id == "a1"
    assert intruder.linked_session_id is None


def test_resolver_refuses_to_move_a_recording_linked_elsewhere_by_webhook() -> None:
    resolver, sessions, recordings = _resolver()
    first = make_session()
    second = make_session(started_at=LATER)
    sessions.add(first)
    sessions.add(second)
    recording = _recording()
    recordings.add(recording)
    resolver.link(first.id, recording, "a1", RecordingSource.WEBHOOK, at=BASE_TIME)

    result = resolver.link(second.id, recording, "a1", RecordingSource.WEBHOOK, at=LATER)

    assert result.outcome is LinkOutcome.CONFLICT
    assert result.conflicts == (ConflictKind.RECORDING_LINK,)
    assert recording.linked_session_id == first.id
    assert second.recording_id is None


def test_end_action_clears_stale_back_reference_of_displaced_recording() -> None:
    resolver, sessions, recordings = _resolver()
    session = make_session()
    sessions.add(session)
    stale = _recording("a1")
    recordings.add(stale)
    resolver.link(session.id, stale, "a1", RecordingSource.WEBHOOK, at=BASE_TIME)
    winner = _recording("b1")
    recordings.add(winner)

    result = resolver.link(session.id, winner, "b1", RecordingSource.END_ACTION, at=LATER)

    assert result.outcome is LinkOutcome.LINKED
    assert session.recording_id == winner.id
    assert session.recording_asset_id == "b1"
    assert session.recording_source is RecordingSource.END_ACTION
    assert winner.linked_session_id == session.id
    assert stale.linked_session_id is None
    assert stale.updated_at == LATER


def test_end_action_does_not_clear_back_reference_pointing_elsewhere() -> None:
    resolver, sessions, recordings = _resolver()
    session = make_session()
    sessions.add(session)
    elsewhere = uuid4()
    stale = _recording("a1")
    stale.linked_session_id = elsewhere
    recordings.add(stale)
    session.apply_link(
        SessionLink(
            recording_id=stale.id,
            recording_asset_id="a1",
            source=RecordingSource.WEBHOOK,
            linked_at=BASE_TIME,
        )
    )
    winner = _recording("b1")
    recordings.add(winner)

    resolver.link(session.id, winner, "b1", RecordingSource.END_ACTION, at=LATER)

    assert stale.linked_session_id == elsewhere


def test_end_action_moves_recording_and_releases_previous_session() -> None:
    resolver, sessions, recordings = _resolver()
    first = make_session()
    second = make_session(started_at=LATER)
    sessions.add(first)
    sessions.add(second)
    recording = _recording()
    recordings.add(recording)
    resolver.link(first.id, recording, "a1", RecordingSource.WEBHOOK, at=BASE_TIME)

    result = resolver.link(second.id, recording, "a1", RecordingSource.END_ACTION, at=LATER)

    assert result.outcome is LinkOutcome.LINKED
    assert recording.linked_session_id == second.id
    assert second.recording_id == recording.id
    assert first.link.is_empty
