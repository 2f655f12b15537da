"""Translate Mux webhook events into recording reports."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC
from logging import getLogger
from typing import Final

from pydantic import ValidationError

from livelink.domain.reports import WebhookAssetReport

from .schema import MuxWebhookEvent

log = getLogger(__name__)

ASSET_EVENT_TYPES: Final[frozenset[str]] = frozenset(
    {"video.asset.created", "video.asset.ready", "video.asset.updated"}
)

type MuxPayloadInput = MuxWebhookEvent | Mapping[str, object] | str | bytes


class WebhookPayloadError(ValueError):
    """Raised when a provider payload cannot be interpreted."""


def parse_webhook_event(payload: MuxPayloadInput) -> MuxWebhookEvent:
    if isinstance(payload, MuxWebhookEvent):
        return payload
    try:
        if isinstance(payload, str | bytes):
            return MuxWebhookEvent.model_validate_json(payload)
        return MuxWebhookEvent.model_validate(payload)
    except ValidationError as exc:
        raise WebhookPayloadError(f"Malformed Mux webhook payload: {exc}") from exc


def translate_webhook_event(payload: MuxPayloadInput) -> WebhookAssetReport | None:
    """Return the asset report carried by ``payload``, or ``None`` for other events."""

    event = parse_webhook_event(payload)
    if event.type not in ASSET_EVENT_TYPES:
        log.debug("Ignoring Mux webhook event of type %s", event.type)
        return None

    asset = event.data
    if asset is None or asset.id is None:
        raise WebhookPayloadError(f"Mux {event.type} event is missing the asset id")

    observed_at = event.created_at
    if observed_at is not None and observed_at.tzinfo is None:
        observed_at = observed_at.replace(tzinfo=UTC)

    return WebhookAssetReport(
        external_asset_id=asset.id,
        external_stream_id=asset.live_stream_id,
        playback_id=asset.public_playback_id,
        duration_seconds=asset.duration,
        status=asset.status,
        title=asset.passthrough,
        event_type=event.type,
        observed_at=observed_at,
    )
