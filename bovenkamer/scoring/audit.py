"""Structured audit logging for scoring operations.

Every write that changes somebody's points goes through here, so the
audit log alone is enough to reconstruct who changed what and when.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from bovenkamer.shared.logging import AUDIT_LEVEL_NUM, AUDIT_LOGGER_NAME


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ScoringAuditLogger:
    """Structured logger for the scoring audit trail."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize the audit logger.

        Args:
            logger: Optional logger instance (creates one if not provided)
        """
        self.logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def log_commit_start(self, run_id: str, participants: int, outcome_hash: str) -> None:
        self.logger.log(AUDIT_LEVEL_NUM, {
            "event": "commit_start",
            "run_id": run_id,
            "participants": participants,
            "outcome_hash": outcome_hash[:16] + "...",
            "timestamp": _now(),
        })

    def log_commit_complete(
        self,
        run_id: str,
        participants_processed: int,
        total_points_awarded: int,
        failures: int,
        commit_hash: str,
        duration_seconds: float,
    ) -> None:
        """Log the end of a commit run.

        Args:
            run_id: Commit run identifier
            participants_processed: Rows written successfully
            total_points_awarded: Sum of written prediction totals
            failures: Participants that were not updated
            commit_hash: Hash of the written totals and outcome (full, for comparison)
            duration_seconds: Wall time of the run
        """
        self.logger.log(AUDIT_LEVEL_NUM, {
            "event": "commit_complete",
            "run_id": run_id,
            "participants_processed": participants_processed,
            "total_points_awarded": total_points_awarded,
            "failures": failures,
            "commit_hash": commit_hash,
            "duration_seconds": round(duration_seconds, 2),
            "timestamp": _now(),
        })

    def log_participant_failure(self, run_id: str, user_id: int, error: str) -> None:
        self.logger.warning({
            "event": "commit_participant_failed",
            "run_id": run_id,
            "user_id": user_id,
            "error": error,
        })

    def log_outcome_update(
        self,
        updated_by: Optional[int],
        changed_keys: Iterable[str],
        cleared_keys: Iterable[str],
        unknown_keys: Iterable[str],
    ) -> None:
        self.logger.log(AUDIT_LEVEL_NUM, {
            "event": "outcome_update",
            "updated_by": updated_by,
            "changed_keys": sorted(changed_keys),
            "cleared_keys": sorted(cleared_keys),
            "unknown_keys": sorted(unknown_keys),
            "timestamp": _now(),
        })

    def log_points_adjustment(
        self,
        user_id: int,
        source: str,
        points: int,
        actor: str,
        new_total: int,
    ) -> None:
        self.logger.log(AUDIT_LEVEL_NUM, {
            "event": "points_adjustment",
            "user_id": user_id,
            "source": source,
            "points": points,
            "actor": actor,
            "new_total": new_total,
            "timestamp": _now(),
        })

    def log_leaderboard(self, kind: str, stats: Dict[str, Any]) -> None:
        self.logger.debug({"event": "leaderboard_served", "kind": kind, **stats})


# Default instance
_audit_logger: Optional[ScoringAuditLogger] = None


def get_audit_logger() -> ScoringAuditLogger:
    """Get or create the default audit logger."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = ScoringAuditLogger()
    return _audit_logger


__all__ = [
    "ScoringAuditLogger",
    "get_audit_logger",
]
