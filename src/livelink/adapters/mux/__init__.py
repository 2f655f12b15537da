"""Public interface for the Mux webhook adapter."""

from __future__ import annotations

from .schema import MuxAsset, MuxPlaybackId, MuxWebhookEvent
from .translator import (
    ASSET_EVENT_TYPES,
    MuxPayloadInput,
    WebhookPayloadError,
    parse_webhook_event,
    translate_webhook_event,
)

__all__ = [
    "ASSET_EVENT_TYPES",
    "MuxAsset",
    "MuxPayloadInput",
    "MuxPlaybackId",
    "MuxWebhookEvent",
    "WebhookPayloadError",
    "parse_webhook_event",
    "translate_webhook_event",
]
