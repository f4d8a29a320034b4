"""Handler for banking prediction scores into the points ledger.

Flow:
1. Load the active fields and the current outcome record
2. Look up every participant that submitted at least one prediction
3. Score each participant against the outcome (pure scorer)
4. Upsert the participant's single prediction ledger row
5. Report processed count, awarded points and per-participant failures
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from time import monotonic
from typing import Dict, List, Optional, Tuple

from bovenkamer.config.scoring_params import ScoringParams, get_scoring_params
from bovenkamer.config.settings import ScoringSettings
from bovenkamer.protocol.models import CommitReport, ParticipantFailure
from bovenkamer.repositories.interface import (
    AnswerRepository,
    FieldRepository,
    LedgerRepository,
    OutcomeRepository,
)
from bovenkamer.scoring.audit import ScoringAuditLogger, get_audit_logger
from bovenkamer.scoring.determinism import compute_commit_hash, compute_hash
from bovenkamer.scoring.rules import build_rules
from bovenkamer.scoring.scorer import describe_breakdown, score
from bovenkamer.scoring.types import OutcomeRecord, ScoringField
from bovenkamer.shared.errors import ReconcileTimeout

logger = logging.getLogger(__name__)

_Outcome = Tuple[int, Optional[int], Optional[str]]


class LedgerReconciler:
    """Recalculate and bank every participant's prediction score."""

    def __init__(
        self,
        *,
        fields: FieldRepository,
        answers: AnswerRepository,
        outcomes: OutcomeRepository,
        ledger: LedgerRepository,
        settings: Optional[ScoringSettings] = None,
        params: Optional[ScoringParams] = None,
        audit: Optional[ScoringAuditLogger] = None,
    ):
        """Initialize the reconciler.

        Args:
            fields: Source of the active prediction questions
            answers: Source of submitted predictions
            outcomes: Source of the outcome record
            ledger: Points ledger the prediction rows are written to
            settings: Concurrency and timeout limits
            params: Scoring thresholds
            audit: Audit logger (defaults to the shared one)
        """
        self.fields = fields
        self.answers = answers
        self.outcomes = outcomes
        self.ledger = ledger
        self.settings = settings or ScoringSettings()
        self.params = params or get_scoring_params()
        self.audit = audit or get_audit_logger()

    async def commit(self) -> CommitReport:
        """Run one commit under the request timeout.

        Raises:
            ReconcileTimeout: The run did not finish in time. Rows written
                before the timeout stay written; rerunning is safe.
            DataAccessError: The fields, outcome or submitter list could
                not be loaded, so nothing was scored.
        """
        timeout = self.settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(self._commit(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error({"reconcile": {"event": "timeout", "timeout_seconds": timeout}})
            raise ReconcileTimeout(f"commit did not finish within {timeout}s") from exc

    async def _commit(self) -> CommitReport:
        run_id = uuid.uuid4().hex[:12]
        started = monotonic()

        fields = await self.fields.active_fields()
        outcome = await self.outcomes.current()
        user_ids = await self.answers.submitted_user_ids()

        self.audit.log_commit_start(run_id, len(user_ids), compute_hash(outcome.values))
        if not fields:
            logger.info({"reconcile": {"event": "no_active_fields", "run_id": run_id}})

        rules = build_rules(self.params)
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def _bounded(user_id: int) -> _Outcome:
            async with semaphore:
                return await self._reconcile_one(run_id, user_id, fields, outcome, rules)

        results: List[_Outcome] = await asyncio.gather(*(_bounded(uid) for uid in user_ids))

        totals: Dict[int, int] = {}
        failures: List[ParticipantFailure] = []
        for user_id, total, error in results:
            if error is not None:
                failures.append(ParticipantFailure(user_id=user_id, error=error))
            else:
                totals[user_id] = total or 0

        commit_hash = compute_commit_hash(totals, outcome.values)
        report = CommitReport(
            participants_processed=len(totals),
            total_points_awarded=sum(totals.values()),
            failures=failures,
            commit_hash=commit_hash,
        )
        self.audit.log_commit_complete(
            run_id=run_id,
            participants_processed=report.participants_processed,
            total_points_awarded=report.total_points_awarded,
            failures=len(failures),
            commit_hash=commit_hash,
            duration_seconds=monotonic() - started,
        )
        return report

    async def _reconcile_one(
        self,
        run_id: str,
        user_id: int,
        fields: List[ScoringField],
        outcome: OutcomeRecord,
        rules,
    ) -> _Outcome:
        try:
            predicted = await self.answers.answers_for(user_id)
            result = score(fields, predicted, outcome.values, rules=rules)
            await self.ledger.upsert_prediction_points(
                user_id, result.total, describe_breakdown(result)
            )
        except Exception as exc:  # one participant must not abort the batch
            self.audit.log_participant_failure(run_id, user_id, str(exc))
            return user_id, None, str(exc) or type(exc).__name__
        logger.debug({"reconcile": {"run_id": run_id, "user_id": user_id, "points": result.total}})
        return user_id, result.total, None


__all__ = ["LedgerReconciler"]
