"""Leaderboard read paths.

The live leaderboard recomputes every participant's prediction score from
the current answers and outcome on each request and never reads the
banked prediction row, so organizers see the effect of an outcome change
before committing it. All other point sources come from the ledger.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from bovenkamer.config.scoring_params import ScoringParams, get_scoring_params
from bovenkamer.config.settings import ScoringSettings
from bovenkamer.protocol.models import (
    BankedEntry,
    BankedLeaderboard,
    CurrentStanding,
    LeaderboardEntry,
    LeaderboardSummary,
    LiveLeaderboard,
    OutcomeStats,
    ParticipantStanding,
)
from bovenkamer.repositories.interface import (
    AnswerRepository,
    FieldRepository,
    LedgerRepository,
    OutcomeRepository,
    ParticipantRepository,
)
from bovenkamer.scoring.audit import ScoringAuditLogger, get_audit_logger
from bovenkamer.scoring.fields import max_points, scoreable_fields
from bovenkamer.scoring.ranking import rank_of, sort_standings, standing_key, summarize
from bovenkamer.scoring.rules import build_rules
from bovenkamer.scoring.scorer import count_entered_outcomes, score
from bovenkamer.scoring.types import OutcomeRecord, Participant, ScoringField
from bovenkamer.shared.enums import LedgerSource
from bovenkamer.shared.errors import DataAccessError, LeaderboardUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ledger sources with their own leaderboard column
_SOURCE_COLUMNS = {
    LedgerSource.REGISTRATION.value: "registration_points",
    LedgerSource.QUIZ.value: "quiz_points",
    LedgerSource.GAME.value: "game_points",
    LedgerSource.BONUS.value: "bonus_points",
}


class LeaderboardHandler:
    def __init__(
        self,
        *,
        fields: FieldRepository,
        answers: AnswerRepository,
        outcomes: OutcomeRepository,
        ledger: LedgerRepository,
        participants: ParticipantRepository,
        settings: Optional[ScoringSettings] = None,
        params: Optional[ScoringParams] = None,
        audit: Optional[ScoringAuditLogger] = None,
    ):
        self.fields = fields
        self.answers = answers
        self.outcomes = outcomes
        self.ledger = ledger
        self.participants = participants
        self.settings = settings or ScoringSettings()
        self.params = params or get_scoring_params()
        self.audit = audit or get_audit_logger()

    async def _guarded(self, operation: str, coro: Awaitable[T]) -> T:
        """Run a read under the request timeout; fail closed on timeout or store error."""
        timeout = self.settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error({"leaderboard": {"operation": operation, "error": "timeout", "timeout_seconds": timeout}})
            raise LeaderboardUnavailable(f"{operation} timed out") from exc
        except DataAccessError as exc:
            logger.error({"leaderboard": {"operation": operation, "error": str(exc)}})
            raise LeaderboardUnavailable(f"{operation} failed") from exc

    # ─────────────────────────────────────────────────────────────────────
    # Live leaderboard
    # ─────────────────────────────────────────────────────────────────────

    async def live_leaderboard(self) -> LiveLeaderboard:
        """Ranked live leaderboard plus outcome completeness stats.

        Raises:
            LeaderboardUnavailable: On timeout or any store failure. No
                partial ranking is ever returned.
        """
        board = await self._guarded("live_leaderboard", self._live())
        self.audit.log_leaderboard("live", {
            "participants": len(board.leaderboard),
            "outcome_fields_entered": board.stats.outcome_fields_entered,
        })
        return board

    async def _live(self) -> LiveLeaderboard:
        fields = await self.fields.active_fields()
        outcome = await self.outcomes.current()
        participants = await self.participants.eligible_participants()

        rules = build_rules(self.params)
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def _bounded(participant: Participant) -> Dict[str, Any]:
            async with semaphore:
                return await self._live_row(participant, fields, outcome, rules)

        rows = await asyncio.gather(*(_bounded(p) for p in participants))
        ordered = sort_standings(rows, points=lambda r: r["total_points"], user_id=lambda r: r["user_id"])
        entries = [LeaderboardEntry(rank=i, **row) for i, row in enumerate(ordered, start=1)]

        stats = OutcomeStats(
            outcome_fields_entered=count_entered_outcomes(fields, outcome.values),
            total_scoreable_fields=len(scoreable_fields(fields)),
            outcome_last_updated=outcome.updated_at,
            max_prediction_points=max_points(fields),
        )
        return LiveLeaderboard(leaderboard=entries, stats=stats)

    async def _live_row(
        self,
        participant: Participant,
        fields: List[ScoringField],
        outcome: OutcomeRecord,
        rules,
    ) -> Dict[str, Any]:
        predicted = await self.answers.answers_for(participant.user_id)
        by_source = await self.ledger.points_by_source(participant.user_id)
        result = score(fields, predicted, outcome.values, rules=rules)

        row: Dict[str, Any] = {
            "user_id": participant.user_id,
            "name": participant.name,
            "prediction_points": result.total,
            "breakdown": dict(result.breakdown),
            "other_points": 0,
        }
        for column in _SOURCE_COLUMNS.values():
            row[column] = 0
        for source, points in by_source.items():
            if source == LedgerSource.PREDICTION.value:
                continue  # banked value; the live score replaces it
            column = _SOURCE_COLUMNS.get(source, "other_points")
            row[column] += points

        row["total_points"] = result.total + sum(
            points for source, points in by_source.items() if source != LedgerSource.PREDICTION.value
        )
        return row

    async def participant_standing(self, user_id: int) -> Optional[ParticipantStanding]:
        """Live row of one participant, or None when they are not on the board."""
        board = await self.live_leaderboard()
        for entry in board.leaderboard:
            if entry.user_id == user_id:
                return ParticipantStanding(
                    entry=entry,
                    total_participants=len(board.leaderboard),
                    max_prediction_points=board.stats.max_prediction_points,
                )
        return None

    # ─────────────────────────────────────────────────────────────────────
    # Banked leaderboard
    # ─────────────────────────────────────────────────────────────────────

    async def _banked_totals(self) -> List[BankedEntry]:
        participants = await self.participants.eligible_participants()
        totals = await self.ledger.totals_by_user()
        ordered = sorted(
            participants,
            key=lambda p: standing_key(totals.get(p.user_id, 0), p.user_id),
        )
        return [
            BankedEntry(
                rank=i,
                user_id=p.user_id,
                name=p.name,
                total_points=totals.get(p.user_id, 0),
            )
            for i, p in enumerate(ordered, start=1)
        ]

    async def banked_leaderboard(self, top: int = 10, user_id: Optional[int] = None) -> BankedLeaderboard:
        """Leaderboard over committed ledger totals.

        Args:
            top: Number of rows to return
            user_id: Participant whose own standing is reported as well

        Returns:
            BankedLeaderboard; an unknown ``user_id`` is reported with rank
            ``total_participants + 1``
        """
        entries = await self._guarded("banked_leaderboard", self._banked_totals())

        current: Optional[CurrentStanding] = None
        if user_id is not None:
            rank = rank_of(user_id, entries)
            if rank is None:
                current = CurrentStanding(user_id=user_id, total_points=0, rank=len(entries) + 1)
            else:
                current = CurrentStanding(
                    user_id=user_id,
                    total_points=entries[rank - 1].total_points,
                    rank=rank,
                )

        return BankedLeaderboard(
            leaderboard=entries[: max(top, 0)],
            total_participants=len(entries),
            current_user=current,
        )

    async def summary(self) -> LeaderboardSummary:
        """Totals, average and points distribution over committed ledger totals."""
        entries = await self._guarded("leaderboard_summary", self._banked_totals())
        stats = summarize([e.total_points for e in entries], self.params)
        return LeaderboardSummary(
            total_participants=stats.total_participants,
            total_points=stats.total_points,
            average_points=stats.average_points,
            points_distribution=stats.distribution,
        )


__all__ = ["LeaderboardHandler"]
