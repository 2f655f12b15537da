"""Pydantic models describing Mux webhook payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class MuxBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MuxPlaybackId(MuxBaseModel):
    id: str | None = None
    policy: str | None = None

    _normalize_id = field_validator("id", mode="before")(_blank_to_none)


class MuxAsset(MuxBaseModel):
    id: str | None = None
    status: str | None = None
    duration: float | None = Field(default=None, ge=0)
    live_stream_id: str | None = None
    passthrough: str | None = None
    playback_ids: list[MuxPlaybackId] = Field(default_factory=list[MuxPlaybackId])

    _normalize_ids = field_validator("id", "live_stream_id", "passthrough", mode="before")(
        _blank_to_none
    )

    @property
    def public_playback_id(self) -> str | None:
        """First playback id with a public policy."""

        for playback in self.playback_ids:
            if playback.policy == "public" and playback.id:
                return playback.id
        return None


class MuxWebhookEvent(MuxBaseModel):
    type: str | None = None
    id: str | None = None
    created_at: datetime | None = None
    data: MuxAsset | None = None
