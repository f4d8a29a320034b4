"""Repository protocols consumed by the scoring handlers.

Implementations: the SQLAlchemy repositories in
``bovenkamer.database.repository`` and the in-memory fakes used by the
handler tests.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Protocol, Tuple, runtime_checkable

from bovenkamer.scoring.types import LedgerEntry, OutcomeRecord, Participant, ScoringField


@runtime_checkable
class FieldRepository(Protocol):
    async def active_fields(self) -> List[ScoringField]:
        """Active questions of the prediction form, in display order. Empty when none."""
        ...


@runtime_checkable
class AnswerRepository(Protocol):
    async def answers_for(self, user_id: int) -> Dict[str, Any]:
        """One typed value per question key for a participant."""
        ...

    async def submitted_user_ids(self) -> List[int]:
        """Participants with at least one non-empty answer, ascending."""
        ...


@runtime_checkable
class OutcomeRepository(Protocol):
    async def current(self) -> OutcomeRecord:
        """The outcome record; an empty record when none was entered yet."""
        ...

    async def save(self, results: Mapping[str, Any], updated_by: int | None) -> OutcomeRecord:
        """Replace the stored mapping and stamp it."""
        ...

    async def merge(
        self,
        updates: Mapping[str, Any],
        updated_by: int | None,
        replace: bool = False,
    ) -> Tuple[OutcomeRecord, OutcomeRecord]:
        """Apply ``updates`` to the stored mapping as one atomic step.

        A ``None`` value removes its key; ``replace`` starts from an empty
        mapping. Returns the record before and after.
        """
        ...


@runtime_checkable
class LedgerRepository(Protocol):
    async def upsert_prediction_points(self, user_id: int, points: int, description: str) -> None:
        """Insert or update the single prediction row of a participant atomically."""
        ...

    async def points_by_source(self, user_id: int) -> Dict[str, int]:
        """Summed points per source for a participant."""
        ...

    async def add_entry(self, user_id: int, source: str, points: int, description: str) -> LedgerEntry:
        """Append a non-prediction ledger row."""
        ...

    async def entries_for(self, user_id: int) -> List[LedgerEntry]:
        ...

    async def totals_by_user(self) -> Dict[int, int]:
        """Summed points over every source, keyed by user id."""
        ...


@runtime_checkable
class ParticipantRepository(Protocol):
    async def eligible_participants(self) -> List[Participant]:
        """Participants that appear on the leaderboard, ascending by id."""
        ...

    async def get(self, user_id: int) -> Participant | None:
        ...


__all__ = [
    "FieldRepository",
    "AnswerRepository",
    "OutcomeRepository",
    "LedgerRepository",
    "ParticipantRepository",
]
