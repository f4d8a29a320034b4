"""
Command line entrypoint for the organizer's scoring tasks.

    bovenkamer-scoring init-db
    bovenkamer-scoring outcomes set wine_bottles=20 first_sleeper=Jan
    bovenkamer-scoring commit
    bovenkamer-scoring leaderboard --banked --top 5
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional, Sequence

from dotenv import load_dotenv

from bovenkamer.config.db_url import ensure_env_database_url
from bovenkamer.config.settings import Settings, load_settings
from bovenkamer.database.dbm import DBM
from bovenkamer.database.init import initialize
from bovenkamer.database.repository import SqlRepositories
from bovenkamer.handlers.leaderboard import LeaderboardHandler
from bovenkamer.handlers.outcomes import OutcomeRecorder
from bovenkamer.handlers.points import ADJUSTABLE_SOURCES, PointsAdjuster
from bovenkamer.handlers.reconcile import LedgerReconciler
from bovenkamer.shared.errors import BovenkamerError
from bovenkamer.shared.logging import configure_logging, setup_audit_logger

logger = logging.getLogger(__name__)


def parse_assignment(raw: str) -> tuple[str, Any]:
    """Parse ``KEY=VALUE``; VALUE is read as JSON and falls back to a plain string.

    ``OutcomeRecorder`` converts the value to its field's type afterwards.
    """
    key, sep, value = raw.partition("=")
    key = key.strip()
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    try:
        return key, json.loads(value)
    except json.JSONDecodeError:
        return key, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bovenkamer-scoring", description="Prediction scoring and leaderboards")
    parser.add_argument("--config", help="YAML settings file (overrides BOVENKAMER_CONFIG)")
    parser.add_argument("--log-level", help="Override logging.level")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create or migrate the database schema")

    outcomes = sub.add_parser("outcomes", help="Show or enter actual outcomes")
    outcomes_sub = outcomes.add_subparsers(dest="outcomes_command", required=True)
    outcomes_sub.add_parser("show", help="Print the current outcome record")
    set_cmd = outcomes_sub.add_parser("set", help="Merge KEY=VALUE pairs into the outcome record")
    set_cmd.add_argument("assignments", nargs="+", type=parse_assignment, metavar="KEY=VALUE")
    set_cmd.add_argument("--by", type=int, dest="updated_by", help="Organizer participant id")
    set_cmd.add_argument("--replace", action="store_true", help="Discard values not given here")

    sub.add_parser("commit", help="Recalculate and bank all prediction scores")

    board = sub.add_parser("leaderboard", help="Print a leaderboard")
    board.add_argument("--banked", action="store_true", help="Use committed ledger totals instead of live scores")
    board.add_argument("--top", type=int, default=10)
    board.add_argument("--user", type=int, dest="user_id", help="Also report this participant (banked only)")
    board.add_argument("--summary", action="store_true", help="Print totals and points distribution")

    standing = sub.add_parser("standing", help="Live standing of one participant")
    standing.add_argument("user_id", type=int)

    adjust = sub.add_parser("adjust", help="Add or subtract points for a participant")
    adjust.add_argument("user_id", type=int)
    adjust.add_argument("source", choices=sorted(ADJUSTABLE_SOURCES))
    adjust.add_argument("points", type=int)
    adjust.add_argument("--reason", required=True)
    adjust.add_argument("--actor", required=True)

    return parser


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    dbm = DBM.from_settings(settings)
    repos = SqlRepositories.build(
        dbm,
        form_key=settings.scoring.predictions_form_key,
        eligible_status=settings.scoring.eligible_status,
    )
    try:
        return await dispatch(args, repos, settings)
    finally:
        await dbm.dispose()


async def dispatch(args: argparse.Namespace, repos: Any, settings: Settings) -> int:
    """Run one subcommand against a set of repositories and print its JSON result."""
    if args.command == "outcomes":
        if args.outcomes_command == "show":
            record = await repos.outcomes.current()
            _emit({"results": record.values, "updatedAt": record.updated_at, "updatedBy": record.updated_by})
            return 0
        recorder = OutcomeRecorder(fields=repos.fields, outcomes=repos.outcomes)
        record = await recorder.record(dict(args.assignments), args.updated_by, replace=args.replace)
        _emit({"results": record.values, "updatedAt": record.updated_at, "updatedBy": record.updated_by})
        return 0

    if args.command == "commit":
        reconciler = LedgerReconciler(
            fields=repos.fields,
            answers=repos.answers,
            outcomes=repos.outcomes,
            ledger=repos.ledger,
            settings=settings.scoring,
            params=settings.params,
        )
        report = await reconciler.commit()
        _emit(report.to_wire())
        return 0 if report.ok else 1

    if args.command == "adjust":
        adjuster = PointsAdjuster(ledger=repos.ledger, participants=repos.participants)
        entry = await adjuster.adjust(args.user_id, args.source, args.points, args.reason, args.actor)
        _emit({"id": entry.id, "userId": entry.user_id, "source": entry.source, "points": entry.points, "description": entry.description})
        return 0

    handler = LeaderboardHandler(
        fields=repos.fields,
        answers=repos.answers,
        outcomes=repos.outcomes,
        ledger=repos.ledger,
        participants=repos.participants,
        settings=settings.scoring,
        params=settings.params,
    )
    if args.command == "standing":
        standing = await handler.participant_standing(args.user_id)
        if standing is None:
            logger.error({"cli": {"event": "unknown_participant", "user_id": args.user_id}})
            return 1
        _emit(standing.to_wire())
        return 0

    if args.summary:
        _emit((await handler.summary()).to_wire())
    elif args.banked:
        _emit((await handler.banked_leaderboard(top=args.top, user_id=args.user_id)).to_wire())
    else:
        board = await handler.live_leaderboard()
        payload = board.to_wire()
        payload["leaderboard"] = payload["leaderboard"][: max(args.top, 0)]
        _emit(payload)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    ensure_env_database_url()

    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    configure_logging(args.log_level or settings.logging.level, json_logs=settings.logging.json_logs)
    if settings.logging.log_dir:
        setup_audit_logger(settings.logging.log_dir, settings.logging.audit_retention_bytes)

    try:
        if args.command == "init-db":
            initialize(settings)
            return 0
        return asyncio.run(_run(args, settings))
    except BovenkamerError as exc:
        logger.error({"cli": {"command": args.command, "error_type": type(exc).__name__, "error": str(exc)}})
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
