"""Field-level merge rules for recordings.

Merging is split into a pure planning step over plain data and a tiny apply
step, so the rules can be exercised without storage:

- title/description: only the authoritative end action may overwrite
- playback_id: first writer wins; a different second value is a conflict
- duration_seconds: monotonic maximum
- status: promoted along the readiness lattice, never regressed
- visibility/uploaded_by: filled when missing
- provider: fixed once set
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from livelink.domain.model import ConflictKind, Recording, RecordingSource

from .status import normalize_status, should_promote

if TYPE_CHECKING:
    from datetime import datetime

    from livelink.domain.model import UserId

    from .facts import RecordingFact, RecordingFacts

type PlaybackUrlBuilder = Callable[[str | None], str | None]


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldConflict:
    kind: ConflictKind
    field_name: str
    existing: object
    incoming: object


@dataclass(frozen=True, slots=True)
class MergePlan:
    """Changes a fact would make to an existing recording."""

    updates: Mapping[str, object] = field(default_factory=dict[str, object])
    conflicts: tuple[FieldConflict, ...] = ()
    status_promoted: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.updates)

    @property
    def updated_fields(self) -> tuple[str, ...]:
        return tuple(sorted(self.updates))


def plan_recording_merge(
    existing: Recording,
    facts: RecordingFacts,
    source: RecordingSource,
    *,
    provider: str,
    playback_url: PlaybackUrlBuilder,
) -> MergePlan:
    """Compute the merge of ``facts`` into ``existing`` without mutating anything."""

    updates: dict[str, object] = {}
    conflicts: list[FieldConflict] = []
    authoritative = source is RecordingSource.END_ACTION

    if authoritative and facts.title and facts.title != existing.title:
        updates["title"] = facts.title
    if (
        authoritative
        and facts.description is not None
        and facts.description != existing.description
    ):
        updates["description"] = facts.description

    if facts.playback_id:
        incoming_url = playback_url(facts.playback_id)
        if existing.playback_id is None:
            updates["playback_id"] = facts.playback_id
            updates["playback_url"] = incoming_url
        elif existing.playback_id == facts.playback_id:
            if existing.playback_url != incoming_url:
                updates["playback_url"] = incoming_url
        else:
            conflicts.append(
                FieldConflict(
                    kind=ConflictKind.PLAYBACK,
                    field_name="playback_id",
                    existing=existing.playback_id,
                    incoming=facts.playback_id,
                )
            )

    if facts.duration_seconds is not None and (
        existing.duration_seconds is None or facts.duration_seconds > existing.duration_seconds
    ):
        updates["duration_seconds"] = facts.duration_seconds

    incoming_status = normalize_status(facts.status)
    status_promoted = should_promote(existing.status, incoming_status)
    if status_promoted:
        updates["status"] = incoming_status

    if facts.visibility and not existing.visibility:
        updates["visibility"] = facts.visibility
    if facts.uploaded_by and not existing.uploaded_by:
        updates["uploaded_by"] = facts.uploaded_by
    if existing.provider is None:
        updates["provider"] = provider

    return MergePlan(updates=updates, conflicts=tuple(conflicts), status_promoted=status_promoted)


def apply_merge_plan(recording: Recording, plan: MergePlan, *, at: datetime) -> None:
    if not plan.changed:
        return
    for name, value in plan.updates.items():
        setattr(recording, name, value)
    recording.touch(at)


def build_recording(
    fact: RecordingFact,
    *,
    provider: str,
    playback_url: PlaybackUrlBuilder,
    default_visibility: str,
    owner_id: UserId | None,
    at: datetime,
) -> Recording:
    """First fact ever observed for an asset: create the recording from it."""

    facts = fact.facts
    return Recording(
        external_asset_id=fact.external_asset_id,
        title=facts.title or "",
        description=facts.description,
        status=normalize_status(facts.status),
        playback_id=facts.playback_id or None,
        playback_url=playback_url(facts.playback_id),
        duration_seconds=facts.duration_seconds,
        visibility=facts.visibility or default_visibility,
        uploaded_by=facts.uploaded_by,
        owner_id=owner_id,
        provider=provider,
        view_count=0,
        heart_count=0,
        created_at=at,
    )
