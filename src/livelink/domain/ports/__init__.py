"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    EntitlementRepository,
    RecordingCandidateRepository,
    RecordingRepository,
    Repository,
    SessionRepository,
)
from .unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "EntitlementRepository",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "RecordingCandidateRepository",
    "RecordingRepository",
    "Repository",
    "RepositoryCollection",
    "SessionRepository",
    "UnitOfWork",
]
