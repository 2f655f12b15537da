"""Domain primitives: scalar aliases + small value objects.

Scalar aliases may be promoted to proper value objects later without changing imports.
"""

from __future__ import annotations

from dataclasses import dataclass

type ExternalAssetId = str
type ExternalStreamId = str
type PlaybackId = str
type UserId = str
type EventType = str


@dataclass(frozen=True, slots=True)
class Principal:
    """An already-authenticated caller.

    The engine never looks the principal up or checks permissions; it only
    uses it to attribute writes.
    """

    user_id: UserId
    is_admin: bool = False
