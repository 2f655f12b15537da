from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from livelink.app import (
    candidate_history,
    end_session,
    get_recording,
    grant_entitlement,
    handle_provider_webhook,
    has_bundled_entitlement,
    report_end_action,
    revoke_entitlement,
    start_session,
)
from livelink.config import configure_logging
from livelink.domain.model import Principal
from livelink.domain.reports import EndActionReport

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--recording-id", type=str, help="Recording the entitlement covers")
    target.add_argument("--session-id", type=str, help="Broadcast session the entitlement covers")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile broadcast recordings")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    session = subparsers.add_parser("session", help="Broadcast session commands")
    session_sub = session.add_subparsers(dest="session_command", required=True)
    session_start = session_sub.add_parser("start", help="Start a broadcast session")
    session_start.add_argument("--user-id", type=str, required=True, help="Broadcasting user")
    session_start.add_argument(
        "--stream-id",
        type=str,
        help="Provider live stream id used to match webhook deliveries",
    )
    session_start.add_argument("--title", type=str, help="Session title")
    session_start.add_argument("--description", type=str, help="Session description")
    session_start.add_argument(
        "--started-at",
        type=str,
        help="ISO-8601 timestamp (UTC) of the broadcast start (defaults to now)",
    )
    session_end = session_sub.add_parser("end", help="End a broadcast session")
    session_end.add_argument("session_id", type=str, help="Session to end")
    session_end.add_argument(
        "--ended-at",
        type=str,
        help="ISO-8601 timestamp (UTC) of the broadcast end (defaults to now)",
    )

    webhook = subparsers.add_parser("webhook", help="Reconcile a provider webhook payload")
    webhook.add_argument("path", type=str, help="JSON payload file ('-' reads stdin)")

    end_broadcast = subparsers.add_parser(
        "end-broadcast",
        help="Report the end of a broadcast together with its recording asset",
    )
    end_broadcast.add_argument("--session-id", type=str, required=True, help="Ended session")
    end_broadcast.add_argument("--asset-id", type=str, required=True, help="Provider asset id")
    end_broadcast.add_argument("--user-id", type=str, required=True, help="Acting user")
    end_broadcast.add_argument("--title", type=str, help="Recording title")
    end_broadcast.add_argument("--description", type=str, help="Recording description")
    end_broadcast.add_argument("--playback-id", type=str, help="Provider playback id")
    end_broadcast.add_argument("--duration", type=float, help="Duration in seconds")
    end_broadcast.add_argument("--status", type=str, help="Provider readiness status")
    end_broadcast.add_argument("--visibility", type=str, help="Recording visibility")

    recording = subparsers.add_parser("recording", help="Recording commands")
    recording_sub = recording.add_subparsers(dest="recording_command", required=True)
    recording_show = recording_sub.add_parser("show", help="Show a recording")
    recording_show.add_argument("recording_id", type=str, help="Recording id")

    candidates = subparsers.add_parser("candidates", help="Show the observation log of an asset")
    candidates.add_argument("asset_id", type=str, help="Provider asset id")

    entitlement = subparsers.add_parser("entitlement", help="Entitlement commands")
    entitlement_sub = entitlement.add_subparsers(dest="entitlement_command", required=True)
    entitlement_grant = entitlement_sub.add_parser("grant", help="Grant a direct entitlement")
    entitlement_grant.add_argument("--user-id", type=str, required=True, help="Entitled user")
    entitlement_grant.add_argument("--granted-by", type=str, help="Granting user")
    _add_target_arguments(entitlement_grant)
    entitlement_revoke = entitlement_sub.add_parser("revoke", help="Revoke a direct entitlement")
    entitlement_revoke.add_argument("--user-id", type=str, required=True, help="Entitled user")
    _add_target_arguments(entitlement_revoke)
    entitlement_check = entitlement_sub.add_parser(
        "check",
        help="Check access including the recording/session bundle",
    )
    entitlement_check.add_argument("--user-id", type=str, required=True, help="User to check")
    _add_target_arguments(entitlement_check)

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _optional_uuid(value: str | None) -> UUID | None:
    return _parse_uuid(value) if value else None


def _optional_datetime(value: str | None) -> datetime | None:
    return _parse_iso_datetime(value) if value else None


def _read_payload(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ValueError(f"Cannot read webhook payload {path}: {exc}") from exc


def _validate(args: argparse.Namespace) -> argparse.Namespace:
    """Convert identifiers and timestamps in place; raises ``ValueError``."""

    if args.command == "session" and args.session_command == "start":
        args.started_at = _optional_datetime(args.started_at)
    elif args.command == "session" and args.session_command == "end":
        args.session_id = _parse_uuid(args.session_id)
        args.ended_at = _optional_datetime(args.ended_at)
    elif args.command == "webhook":
        args.payload = _read_payload(args.path)
    elif args.command == "end-broadcast":
        args.session_id = _parse_uuid(args.session_id)
        if args.duration is not None and args.duration < 0:
            raise ValueError("Duration must be non-negative")
    elif args.command == "recording":
        args.recording_id = _parse_uuid(args.recording_id)
    elif args.command == "entitlement":
        args.recording_id = _optional_uuid(args.recording_id)
        args.session_id = _optional_uuid(args.session_id)
    return args


def _run(args: argparse.Namespace) -> int:  # noqa: C901, PLR0911
    if args.command == "session" and args.session_command == "start":
        session = start_session(
            Principal(user_id=args.user_id),
            external_stream_id=args.stream_id,
            title=args.title,
            description=args.description,
            started_at=args.started_at,
        )
        log.info("Started session %s", session.id)
        return 0
    if args.command == "session" and args.session_command == "end":
        ended = end_session(args.session_id, ended_at=args.ended_at)
        if ended is None:
            log.warning("Session %s not found", args.session_id)
            return 1
        log.info("Session %s ended at %s", ended.id, ended.ended_at)
        return 0
    if args.command == "webhook":
        result = handle_provider_webhook(args.payload)
        if result is None:
            log.info("Webhook event ignored")
        else:
            log.info(
                "Webhook reconciled: recording=%s, action=%s, link=%s, conflicts=%s",
                result.recording_id,
                result.action,
                result.link_outcome,
                list(result.conflicts),
            )
        return 0
    if args.command == "end-broadcast":
        result = report_end_action(
            EndActionReport(
                session_id=args.session_id,
                external_asset_id=args.asset_id,
                title=args.title,
                description=args.description,
                playback_id=args.playback_id,
                duration_seconds=args.duration,
                status=args.status,
                visibility=args.visibility,
            ),
            principal=Principal(user_id=args.user_id),
        )
        log.info(
            "End action reconciled: recording=%s, action=%s, link=%s, conflicts=%s",
            result.recording_id,
            result.action,
            result.link_outcome,
            list(result.conflicts),
        )
        return 0
    if args.command == "recording" and args.recording_command == "show":
        recording = get_recording(args.recording_id)
        if recording is None:
            log.warning("Recording %s not found", args.recording_id)
            return 1
        log.info(
            "Recording %s: asset=%s, title=%r, status=%s, playback=%s, session=%s",
            recording.id,
            recording.external_asset_id,
            recording.title,
            recording.status,
            recording.playback_url,
            recording.linked_session_id,
        )
        return 0
    if args.command == "candidates":
        candidate = candidate_history(args.asset_id)
        if candidate is None:
            log.warning("No observations for asset %s", args.asset_id)
            return 1
        log.info(
            "Asset %s seen %s times between %s and %s: %s",
            candidate.external_asset_id,
            candidate.observation_count,
            candidate.first_seen_at,
            candidate.last_seen_at,
            ", ".join(
                f"{item.source}:{item.event_type}" for item in candidate.sorted_observations()
            ),
        )
        return 0
    if args.command == "entitlement":
        return _run_entitlement(args)
    raise ValueError(f"Unsupported command: {args.command}")


def _run_entitlement(args: argparse.Namespace) -> int:
    if args.entitlement_command == "grant":
        entitlement = grant_entitlement(
            args.user_id,
            recording_id=args.recording_id,
            session_id=args.session_id,
            principal=Principal(user_id=args.granted_by) if args.granted_by else None,
        )
        log.info("Entitlement %s granted to %s", entitlement.id, entitlement.user_id)
        return 0
    if args.entitlement_command == "revoke":
        revoked = revoke_entitlement(
            args.user_id,
            recording_id=args.recording_id,
            session_id=args.session_id,
        )
        log.info("Entitlement for %s %s", args.user_id, "revoked" if revoked else "not found")
        return 0
    allowed = has_bundled_entitlement(
        args.user_id,
        recording_id=args.recording_id,
        session_id=args.session_id,
    )
    log.info("Access for %s: %s", args.user_id, "granted" if allowed else "denied")
    return 0 if allowed else 1


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _validate(_parse_args(args_list))
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        exit_code = _run(parsed_args)
    except Exception:
        log.exception("Fatal error while running %s", parsed_args.command)
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
