"""Inbound reports from the two producers the reconciliation core listens to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from livelink.domain.reconciliation.facts import END_ACTION_EVENT, WEBHOOK_ASSET_EVENT

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from livelink.domain.model import EventType, ExternalAssetId, ExternalStreamId, PlaybackId


@dataclass(frozen=True, slots=True, kw_only=True)
class WebhookAssetReport:
    """An asset lifecycle event as delivered by the video provider.

    ``link_session_id`` is only known when the delivery already names an
    internal session; otherwise the session is matched by ``external_stream_id``.
    """

    external_asset_id: ExternalAssetId
    external_stream_id: ExternalStreamId | None = None
    link_session_id: UUID | None = None
    playback_id: PlaybackId | None = None
    duration_seconds: float | None = None
    status: str | None = None
    title: str | None = None
    description: str | None = None
    visibility: str | None = None
    event_type: EventType = WEBHOOK_ASSET_EVENT
    observed_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class EndActionReport:
    """The operator ended a broadcast and the recording asset is known."""

    session_id: UUID
    external_asset_id: ExternalAssetId
    title: str | None = None
    description: str | None = None
    playback_id: PlaybackId | None = None
    duration_seconds: float | None = None
    status: str | None = None
    visibility: str | None = None
    ended_at: datetime | None = None
    event_type: EventType = END_ACTION_EVENT
