"""Readiness lattice for recordings.

Provider vocabulary is mapped onto three ordered ranks. Promotion is strictly
monotonic: a lower-ranked report never moves a recording backwards.
"""

from __future__ import annotations

from typing import Final

from livelink.domain.model import ReadinessStatus

STATUS_RANK: Final[dict[ReadinessStatus, int]] = {
    ReadinessStatus.UPLOADING: 0,
    ReadinessStatus.PROCESSING: 1,
    ReadinessStatus.READY: 2,
}

DEFAULT_STATUS: Final[ReadinessStatus] = ReadinessStatus.PROCESSING

_SYNONYMS: Final[dict[str, ReadinessStatus]] = {
    "waiting": ReadinessStatus.UPLOADING,
    "uploading": ReadinessStatus.UPLOADING,
    "created": ReadinessStatus.PROCESSING,
    "preparing": ReadinessStatus.PROCESSING,
    "processing": ReadinessStatus.PROCESSING,
    "ready": ReadinessStatus.READY,
}


def normalize_status(raw: str | ReadinessStatus | None) -> ReadinessStatus:
    """Map a provider status onto the lattice; unknown or absent means processing."""

    if isinstance(raw, ReadinessStatus):
        return raw
    if raw is None:
        return DEFAULT_STATUS
    return _SYNONYMS.get(raw.strip().lower(), DEFAULT_STATUS)


def rank(status: ReadinessStatus) -> int:
    return STATUS_RANK[status]


def should_promote(current: ReadinessStatus | None, incoming: ReadinessStatus) -> bool:
    if current is None:
        return True
    return rank(incoming) > rank(current)


def promote(current: ReadinessStatus | None, incoming: ReadinessStatus) -> ReadinessStatus:
    """Return the higher-ranked of ``current`` and ``incoming``."""

    if current is None or should_promote(current, incoming):
        return incoming
    return current
