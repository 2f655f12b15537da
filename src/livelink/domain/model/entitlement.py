"""Direct access grants on recordings or sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from livelink.domain.model.entity import Entity, utcnow
from livelink.domain.model.enums import EntityType

if TYPE_CHECKING:
    from uuid import UUID

    from livelink.domain.model.primitives import UserId


@dataclass(eq=False, kw_only=True)
class Entitlement(Entity):
    """XOR: exactly one of ``recording_id`` / ``session_id`` is set."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ENTITLEMENT

    user_id: UserId
    recording_id: UUID | None = None
    session_id: UUID | None = None
    granted_at: datetime = field(default_factory=utcnow)
    granted_by: str | None = None

    def __post_init__(self) -> None:
        if (self.recording_id is None) == (self.session_id is None):
            raise ValueError("Entitlement requires exactly one of recording_id or session_id")
