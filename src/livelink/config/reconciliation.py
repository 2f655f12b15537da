"""Reconciliation engine configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_flag, env_float, optional_env_var
from .errors import ConfigurationError

DEFAULT_PROVIDER = "mux"
DEFAULT_PLAYBACK_URL_TEMPLATE = "https://stream.mux.com/{playback_id}.m3u8"
DEFAULT_VISIBILITY = "public"
DEFAULT_SESSION_MATCH_GRACE_SECONDS = 3600.0


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    """Tunables shared by the reconciliation engine and its app services."""

    provider: str = DEFAULT_PROVIDER
    playback_url_template: str = DEFAULT_PLAYBACK_URL_TEMPLATE
    default_visibility: str = DEFAULT_VISIBILITY
    session_match_grace: timedelta = timedelta(seconds=DEFAULT_SESSION_MATCH_GRACE_SECONDS)
    trace_enabled: bool = False

    def __post_init__(self) -> None:
        if "{playback_id}" not in self.playback_url_template:
            raise ConfigurationError(
                "Playback URL template must contain the '{playback_id}' placeholder"
            )
        if self.session_match_grace < timedelta(0):
            raise ConfigurationError("Session match grace period must be non-negative")

    def playback_url(self, playback_id: str | None) -> str | None:
        if not playback_id:
            return None
        return self.playback_url_template.replace("{playback_id}", playback_id)


def get_reconciliation_config() -> ReconciliationConfig:
    grace_seconds = env_float(
        "LIVELINK_SESSION_MATCH_GRACE_SECONDS",
        default=DEFAULT_SESSION_MATCH_GRACE_SECONDS,
    )
    return ReconciliationConfig(
        provider=optional_env_var("LIVELINK_PROVIDER") or DEFAULT_PROVIDER,
        playback_url_template=(
            optional_env_var("LIVELINK_PLAYBACK_URL_TEMPLATE") or DEFAULT_PLAYBACK_URL_TEMPLATE
        ),
        default_visibility=optional_env_var("LIVELINK_DEFAULT_VISIBILITY") or DEFAULT_VISIBILITY,
        session_match_grace=timedelta(seconds=grace_seconds),
        trace_enabled=env_flag("LIVELINK_RECORDING_TRACE"),
    )
