"""Shared fixtures: in-memory repositories and a small prediction form."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Mapping, Optional, Tuple
from unittest.mock import MagicMock

import pytest

from bovenkamer.config.settings import ScoringSettings
from bovenkamer.scoring.audit import ScoringAuditLogger
from bovenkamer.scoring.types import (
    PREDICTION_SOURCE,
    LedgerEntry,
    OutcomeRecord,
    Participant,
    ScoringField,
)
from bovenkamer.shared.enums import FieldType


BASE_TIME = datetime(2026, 1, 31, 18, 0, tzinfo=timezone.utc)


class InMemoryFields:
    def __init__(self, fields: List[ScoringField]):
        self.fields = list(fields)

    async def active_fields(self) -> List[ScoringField]:
        return sorted((f for f in self.fields if f.is_active), key=lambda f: f.sort_key)


class InMemoryAnswers:
    def __init__(self, answers: Optional[Dict[int, Dict[str, Any]]] = None):
        self.answers = answers or {}

    async def answers_for(self, user_id: int) -> Dict[str, Any]:
        return {k: v for k, v in self.answers.get(user_id, {}).items() if v is not None}

    async def submitted_user_ids(self) -> List[int]:
        return sorted(
            uid for uid, values in self.answers.items()
            if any(v is not None for v in values.values())
        )


class InMemoryOutcomes:
    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.record = OutcomeRecord(values=dict(values or {}), updated_at=BASE_TIME if values else None)
        self.saves = 0

    async def current(self) -> OutcomeRecord:
        return self.record

    async def save(self, results: Mapping[str, Any], updated_by: Optional[int]) -> OutcomeRecord:
        self.saves += 1
        self.record = OutcomeRecord(
            values=dict(results),
            updated_at=BASE_TIME + timedelta(minutes=self.saves),
            updated_by=updated_by,
        )
        return self.record

    async def merge(
        self, updates: Mapping[str, Any], updated_by: Optional[int], replace: bool = False
    ) -> Tuple[OutcomeRecord, OutcomeRecord]:
        previous = self.record
        return previous, await self.save(previous.merged_values(updates, replace), updated_by)


class InMemoryLedger:
    """Ledger with the same upsert semantics as the SQL repository."""

    def __init__(self):
        self.rows: List[LedgerEntry] = []
        self._clock = 0

    def _now(self) -> datetime:
        self._clock += 1
        return BASE_TIME + timedelta(seconds=self._clock)

    async def upsert_prediction_points(self, user_id: int, points: int, description: str) -> None:
        for i, row in enumerate(self.rows):
            if row.user_id == user_id and row.source == PREDICTION_SOURCE:
                if row.points == points and row.description == description:
                    return
                self.rows[i] = LedgerEntry(
                    id=row.id,
                    user_id=user_id,
                    source=PREDICTION_SOURCE,
                    points=points,
                    description=description,
                    created_at=row.created_at,
                    updated_at=self._now(),
                )
                return
        now = self._now()
        self.rows.append(
            LedgerEntry(len(self.rows) + 1, user_id, PREDICTION_SOURCE, points, description, now, now)
        )

    async def points_by_source(self, user_id: int) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for row in self.rows:
            if row.user_id == user_id:
                out[row.source] = out.get(row.source, 0) + row.points
        return out

    async def add_entry(self, user_id: int, source: str, points: int, description: str) -> LedgerEntry:
        now = self._now()
        entry = LedgerEntry(len(self.rows) + 1, user_id, source, points, description, now, now)
        self.rows.append(entry)
        return entry

    async def entries_for(self, user_id: int) -> List[LedgerEntry]:
        return [row for row in self.rows if row.user_id == user_id]

    async def totals_by_user(self) -> Dict[int, int]:
        out: Dict[int, int] = {}
        for row in self.rows:
            out[row.user_id] = out.get(row.user_id, 0) + row.points
        return out

    def prediction_rows(self) -> List[LedgerEntry]:
        return [row for row in self.rows if row.source == PREDICTION_SOURCE]


class InMemoryParticipants:
    def __init__(self, participants: List[Participant]):
        self.participants = sorted(participants, key=lambda p: p.user_id)

    async def eligible_participants(self) -> List[Participant]:
        return list(self.participants)

    async def get(self, user_id: int) -> Optional[Participant]:
        for p in self.participants:
            if p.user_id == user_id:
                return p
        return None


def make_field(key: str, type_: FieldType, order: int, stored: str, **kwargs: Any) -> ScoringField:
    return ScoringField(
        key=key,
        label=key.replace("_", " ").title(),
        type=type_,
        section_order=kwargs.pop("section_order", 1),
        field_order=order,
        field_type=stored,
        **kwargs,
    )


@pytest.fixture
def prediction_fields() -> List[ScoringField]:
    """Six questions covering every comparison strategy."""
    return [
        make_field("wine_bottles", FieldType.NUMERIC, 1, "slider"),
        make_field("first_sleeper", FieldType.EXACT, 2, "select_options"),
        make_field("last_to_leave", FieldType.EXACT, 3, "radio_group"),
        make_field("dinner_served", FieldType.TIME, 4, "time"),
        make_field("snow_falls", FieldType.EXACT, 5, "boolean"),
        make_field("toast_text", FieldType.UNSCORED, 6, "text_long"),
    ]


@pytest.fixture
def mock_audit():
    return ScoringAuditLogger(logger=MagicMock(spec=logging.Logger))


@pytest.fixture
def scoring_settings() -> ScoringSettings:
    return ScoringSettings(max_concurrency=4, request_timeout_seconds=5)


@pytest.fixture
def repos(prediction_fields):
    """In-memory repositories with three approved participants."""
    participants = [
        Participant(user_id=1, name="Anna"),
        Participant(user_id=2, name="Bram"),
        Participant(user_id=3, name="Carla"),
    ]
    return SimpleNamespace(
        fields=InMemoryFields(prediction_fields),
        answers=InMemoryAnswers({
            1: {"wine_bottles": 20, "first_sleeper": "Jan", "dinner_served": 4, "snow_falls": True},
            2: {"wine_bottles": 22, "first_sleeper": "Piet", "dinner_served": 5},
            3: {"toast_text": "Proost"},
        }),
        outcomes=InMemoryOutcomes(),
        ledger=InMemoryLedger(),
        participants=InMemoryParticipants(participants),
    )
