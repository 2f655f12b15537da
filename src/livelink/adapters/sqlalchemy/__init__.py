"""SQLAlchemy adapter package for livelink."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyEntitlementRepository,
    SqlAlchemyRecordingCandidateRepository,
    SqlAlchemyRecordingRepository,
    SqlAlchemySessionRepository,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyEntitlementRepository",
    "SqlAlchemyRecordingCandidateRepository",
    "SqlAlchemyRecordingRepository",
    "SqlAlchemySessionRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
