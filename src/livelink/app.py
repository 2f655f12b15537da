"""Application orchestration entry points.

Every service opens its own unit of work, so each call is one atomic
read-merge-write. Callers retry the identical call after a storage failure.
"""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from livelink.adapters.mux import translate_webhook_event
from livelink.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from livelink.config import ReconciliationConfig, get_reconciliation_config
from livelink.domain import sessions as session_lifecycle
from livelink.domain.entitlements import EntitlementBundler
from livelink.domain.model import Principal, RecordingSource, utcnow
from livelink.domain.ports.unit_of_work import ReconciliationUnitOfWork
from livelink.domain.reconciliation import (
    CandidateTracker,
    ReconciliationEngine,
    RecordingFacts,
    TraceLogger,
)

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from livelink.adapters.mux import MuxPayloadInput
    from livelink.domain.model import (
        BroadcastSession,
        Clock,
        Entitlement,
        ExternalAssetId,
        ExternalStreamId,
        Recording,
        RecordingCandidate,
        UserId,
    )
    from livelink.domain.ports import ReconciliationRepositories
    from livelink.domain.reconciliation import UpsertResult
    from livelink.domain.reports import EndActionReport, WebhookAssetReport

UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]

DEFAULT_RECORDING_TITLE = "Stream Recording"

log = getLogger(__name__)


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def _engine(
    repositories: ReconciliationRepositories,
    config: ReconciliationConfig,
    clock: Clock,
) -> ReconciliationEngine:
    return ReconciliationEngine(
        repositories=repositories,
        policy=config,
        clock=clock,
        trace=TraceLogger(enabled=config.trace_enabled),
    )


def _bundler(repositories: ReconciliationRepositories) -> EntitlementBundler:
    return EntitlementBundler(
        recordings=repositories.recordings,
        sessions=repositories.sessions,
        entitlements=repositories.entitlements,
    )


# Reconciliation --------------------------------------------------------------


def report_webhook_asset(
    report: WebhookAssetReport,
    *,
    principal: Principal | None = None,
    correlation_id: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
    clock: Clock = utcnow,
) -> UpsertResult:
    """Reconcile a provider webhook delivery.

    Without an explicit session id the session is matched by the provider's
    stream id; an ambiguous or missing match reconciles the recording without
    requesting a link.
    """

    effective_config = config or get_reconciliation_config()
    effective_uow = _unit_of_work_factory(unit_of_work_factory)

    with effective_uow() as uow:
        repositories = uow.repositories
        link_target = report.link_session_id
        session: BroadcastSession | None = None
        if link_target is not None:
            session = repositories.sessions.get(link_target)
        elif report.external_stream_id:
            match = session_lifecycle.match_session_for_stream(
                repositories.sessions.list_by_external_stream_id(report.external_stream_id),
                observed_at=report.observed_at,
                grace=effective_config.session_match_grace,
            )
            session = match.session
            if session is not None:
                link_target = session.id
            else:
                log.info(
                    "No unambiguous session for stream %s (asset %s, candidates=%s)",
                    report.external_stream_id,
                    report.external_asset_id,
                    len(match.candidates),
                )

        facts = RecordingFacts(
            title=report.title or (session.title if session else None) or DEFAULT_RECORDING_TITLE,
            description=report.description or (session.description if session else None),
            playback_id=report.playback_id,
            duration_seconds=report.duration_seconds,
            status=report.status,
            visibility=report.visibility,
            uploaded_by=session.owner_id if session else None,
        )
        owner = principal
        if owner is None and session is not None and session.owner_id:
            owner = Principal(user_id=session.owner_id)

        result = _engine(repositories, effective_config, clock).upsert(
            RecordingSource.WEBHOOK,
            report.external_asset_id,
            facts,
            link_target,
            event_type=report.event_type,
            correlation_id=correlation_id,
            principal=owner,
        )
        uow.commit()

    log.info(
        f"Webhook asset {report.external_asset_id}: action={result.action}, "
        f"link={result.link_outcome}, conflicts={list(result.conflicts)}"
    )
    return result


def report_end_action(
    report: EndActionReport,
    *,
    principal: Principal,
    correlation_id: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
    clock: Clock = utcnow,
) -> UpsertResult:
    """Reconcile the operator's end-broadcast action; it is authoritative for the link."""

    effective_config = config or get_reconciliation_config()
    effective_uow = _unit_of_work_factory(unit_of_work_factory)

    with effective_uow() as uow:
        repositories = uow.repositories
        session = session_lifecycle.end_session(
            repositories.sessions,
            report.session_id,
            ended_at=report.ended_at,
            clock=clock,
        )
        if session is None:
            log.warning("End action for unknown session %s", report.session_id)

        facts = RecordingFacts(
            title=report.title or (session.title if session else None),
            description=report.description,
            playback_id=report.playback_id,
            duration_seconds=report.duration_seconds,
            status=report.status,
            visibility=report.visibility,
            uploaded_by=principal.user_id,
        )
        result = _engine(repositories, effective_config, clock).upsert(
            RecordingSource.END_ACTION,
            report.external_asset_id,
            facts,
            report.session_id,
            event_type=report.event_type,
            correlation_id=correlation_id,
            principal=principal,
        )
        uow.commit()

    log.info(
        f"End action for session {report.session_id}: asset={report.external_asset_id}, "
        f"action={result.action}, link={result.link_outcome}"
    )
    return result


def handle_provider_webhook(
    payload: MuxPayloadInput,
    *,
    correlation_id: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
    clock: Clock = utcnow,
) -> UpsertResult | None:
    """Translate and reconcile a raw provider webhook; unrelated events return ``None``."""

    report = translate_webhook_event(payload)
    if report is None:
        return None
    return report_webhook_asset(
        report,
        correlation_id=correlation_id,
        unit_of_work_factory=unit_of_work_factory,
        config=config,
        clock=clock,
    )


def get_recording(
    recording_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Recording | None:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return uow.repositories.recordings.get(recording_id)


def candidate_history(
    external_asset_id: ExternalAssetId,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> RecordingCandidate | None:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return CandidateTracker(uow.repositories.candidates).history(external_asset_id)


# Sessions --------------------------------------------------------------------


def start_session(
    principal: Principal,
    *,
    external_stream_id: ExternalStreamId | None = None,
    title: str | None = None,
    description: str | None = None,
    started_at: datetime | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> BroadcastSession:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        session = session_lifecycle.start_session(
            uow.repositories.sessions,
            principal,
            external_stream_id=external_stream_id,
            title=title,
            description=description,
            started_at=started_at,
            clock=clock,
        )
        uow.commit()
    log.info(f"Started session {session.id} for {principal.user_id} on {external_stream_id}")
    return session


def end_session(
    session_id: UUID,
    *,
    ended_at: datetime | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> BroadcastSession | None:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        session = session_lifecycle.end_session(
            uow.repositories.sessions,
            session_id,
            ended_at=ended_at,
            clock=clock,
        )
        uow.commit()
    return session


def get_session_by_external_stream_id(
    external_stream_id: ExternalStreamId,
    *,
    observed_at: datetime | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
) -> BroadcastSession | None:
    effective_config = config or get_reconciliation_config()
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        match = session_lifecycle.match_session_for_stream(
            uow.repositories.sessions.list_by_external_stream_id(external_stream_id),
            observed_at=observed_at,
            grace=effective_config.session_match_grace,
        )
    return match.session


# Entitlements ----------------------------------------------------------------


def has_bundled_entitlement(
    user_id: UserId,
    *,
    recording_id: UUID | None = None,
    session_id: UUID | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> bool:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return _bundler(uow.repositories).has_bundled_entitlement(
            user_id,
            recording_id=recording_id,
            session_id=session_id,
        )


def grant_entitlement(
    user_id: UserId,
    *,
    recording_id: UUID | None = None,
    session_id: UUID | None = None,
    principal: Principal | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Entitlement:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        entitlement = _bundler(uow.repositories).grant(
            user_id,
            recording_id=recording_id,
            session_id=session_id,
            granted_by=principal.user_id if principal else None,
        )
        uow.commit()
    return entitlement


def revoke_entitlement(
    user_id: UserId,
    *,
    recording_id: UUID | None = None,
    session_id: UUID | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> bool:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        revoked = _bundler(uow.repositories).revoke(
            user_id,
            recording_id=recording_id,
            session_id=session_id,
        )
        uow.commit()
    return revoked
