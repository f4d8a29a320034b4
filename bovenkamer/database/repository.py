"""SQLAlchemy implementations of the repository protocols."""

from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from sqlalchemy import and_, func, or_, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from bovenkamer.scoring.answers import StoredResponse, flatten_responses
from bovenkamer.scoring.determinism import normalize_number
from bovenkamer.scoring.fields import classify_field_type
from bovenkamer.scoring.types import (
    PREDICTION_SOURCE,
    LedgerEntry,
    OutcomeRecord,
    Participant as ParticipantRecord,
    ScoringField,
)
from bovenkamer.shared.errors import DataAccessError

from .dbm import DBM
from .schema import (
    FormDefinition,
    FormField,
    FormResponse,
    FormSection,
    Participant,
    PointsLedger,
    PredictionOutcome,
)
from .schema.ledger import PREDICTION_ROW_PREDICATE
from .schema.outcomes import OUTCOME_ROW_ID

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        logger.warning({"repository": {"operation": operation, "error": str(exc)}})
        raise DataAccessError(f"{operation} failed: {exc}") from exc


def _dialect_insert(dbm: DBM):
    if dbm.dialect == "postgresql":
        return pg_insert
    return sqlite_insert


def _active_form_fields(form_key: str, *columns: Any):
    """Join producing the fields of the live version of a form."""
    return (
        select(*(columns or (FormField, FormSection)))
        .join(FormSection, FormField.section_id == FormSection.id)
        .join(
            FormDefinition,
            and_(
                FormSection.form_id == FormDefinition.id,
                FormSection.version == FormDefinition.active_version,
            ),
        )
        .where(FormDefinition.key == form_key)
    )


class SqlFieldRepository:
    def __init__(self, dbm: DBM, form_key: str = "predictions"):
        self.dbm = dbm
        self.form_key = form_key

    async def active_fields(self) -> List[ScoringField]:
        stmt = (
            _active_form_fields(self.form_key)
            .where(FormSection.is_active.is_(True))
            .where(FormField.is_active.is_(True))
            .order_by(FormSection.sort_order, FormField.sort_order, FormField.id)
        )
        with _store_errors("active_fields"):
            async with self.dbm.session() as session:
                rows = (await session.execute(stmt)).all()

        return [
            ScoringField(
                key=field.key,
                label=field.label,
                type=classify_field_type(field.field_type),
                options=dict(field.options or {}),
                section_order=section.sort_order,
                field_order=field.sort_order,
                is_active=field.is_active,
                section_key=section.key,
                section_label=section.label,
                field_type=field.field_type,
            )
            for field, section in rows
        ]


_HAS_VALUE = or_(
    FormResponse.text.is_not(None),
    FormResponse.number.is_not(None),
    FormResponse.boolean.is_not(None),
    FormResponse.participant_id.is_not(None),
    FormResponse.json_value.is_not(None),
)


class SqlAnswerRepository:
    def __init__(self, dbm: DBM, form_key: str = "predictions"):
        self.dbm = dbm
        self.form_key = form_key

    def _form_field_ids(self):
        return _active_form_fields(self.form_key, FormField.id)

    async def answers_for(self, user_id: int) -> Dict[str, Any]:
        stmt = (
            select(FormResponse, FormField.key, FormField.field_type)
            .join(FormField, FormResponse.field_id == FormField.id)
            .where(FormResponse.user_id == user_id)
            .where(FormResponse.field_id.in_(self._form_field_ids()))
        )
        with _store_errors("answers_for"):
            async with self.dbm.session() as session:
                rows = (await session.execute(stmt)).all()

        return flatten_responses(
            StoredResponse(
                id=response.id,
                field_key=key,
                field_type=field_type,
                text=response.text,
                number=response.number,
                boolean=response.boolean,
                participant_id=response.participant_id,
                json_value=response.json_value,
                updated_at=response.updated_at,
            )
            for response, key, field_type in rows
        )

    async def submitted_user_ids(self) -> List[int]:
        stmt = (
            select(FormResponse.user_id)
            .where(FormResponse.field_id.in_(self._form_field_ids()))
            .where(_HAS_VALUE)
            .distinct()
            .order_by(FormResponse.user_id)
        )
        with _store_errors("submitted_user_ids"):
            rows = await self.dbm.read(stmt)
        return [row["user_id"] for row in rows]


class SqlOutcomeRepository:
    def __init__(self, dbm: DBM):
        self.dbm = dbm

    async def current(self) -> OutcomeRecord:
        stmt = select(PredictionOutcome).where(PredictionOutcome.id == OUTCOME_ROW_ID)
        with _store_errors("outcome_current"):
            async with self.dbm.session() as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return OutcomeRecord.empty()
        return _to_outcome(row)

    async def save(self, results: Mapping[str, Any], updated_by: int | None) -> OutcomeRecord:
        now = dt.datetime.now(dt.timezone.utc)
        insert = _dialect_insert(self.dbm)
        stmt = insert(PredictionOutcome).values(
            id=OUTCOME_ROW_ID,
            results=dict(results),
            updated_at=now,
            updated_by=updated_by,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[PredictionOutcome.id],
            set_={
                "results": stmt.excluded.results,
                "updated_at": stmt.excluded.updated_at,
                "updated_by": stmt.excluded.updated_by,
            },
        )
        with _store_errors("outcome_save"):
            async with self.dbm.session() as session:
                async with session.begin():
                    await session.execute(stmt)
        return OutcomeRecord(values=dict(results), updated_at=now, updated_by=updated_by)

    async def merge(
        self,
        updates: Mapping[str, Any],
        updated_by: int | None,
        replace: bool = False,
    ) -> Tuple[OutcomeRecord, OutcomeRecord]:
        """Read, merge and write the outcome row in one transaction.

        The row is locked for the duration (``FOR UPDATE`` on PostgreSQL,
        the write lock taken by the initial insert on SQLite), so two
        concurrent partial entries both land.
        """
        now = dt.datetime.now(dt.timezone.utc)
        insert = _dialect_insert(self.dbm)
        ensure_row = (
            insert(PredictionOutcome)
            .values(id=OUTCOME_ROW_ID, results={}, updated_at=now, updated_by=None)
            .on_conflict_do_nothing(index_elements=[PredictionOutcome.id])
        )
        locked = select(PredictionOutcome).where(PredictionOutcome.id == OUTCOME_ROW_ID).with_for_update()

        with _store_errors("outcome_merge"):
            async with self.dbm.session() as session:
                async with session.begin():
                    created = (await session.execute(ensure_row)).rowcount == 1
                    row = (await session.execute(locked)).scalar_one()
                    previous = OutcomeRecord.empty() if created else _to_outcome(row)
                    row.results = previous.merged_values(updates, replace)
                    row.updated_at = now
                    row.updated_by = updated_by
                    stored = _to_outcome(row)
        return previous, stored


def _to_outcome(row: PredictionOutcome) -> OutcomeRecord:
    return OutcomeRecord(
        values={k: normalize_number(v) for k, v in (row.results or {}).items()},
        updated_at=row.updated_at,
        updated_by=row.updated_by,
    )


def _to_entry(row: PointsLedger) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        source=row.source,
        points=row.points,
        description=row.description,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlLedgerRepository:
    def __init__(self, dbm: DBM):
        self.dbm = dbm

    async def upsert_prediction_points(self, user_id: int, points: int, description: str) -> None:
        """Atomic insert-or-update of the participant's prediction row.

        The update only fires when points or description differ, so an
        unchanged rerun leaves ``updated_at`` untouched.
        """
        now = dt.datetime.now(dt.timezone.utc)
        insert = _dialect_insert(self.dbm)
        stmt = insert(PointsLedger)
        stmt = stmt.on_conflict_do_update(
            index_elements=[PointsLedger.user_id, PointsLedger.source],
            index_where=text(PREDICTION_ROW_PREDICATE),
            set_={
                "points": stmt.excluded.points,
                "description": stmt.excluded.description,
                "updated_at": stmt.excluded.updated_at,
            },
            where=or_(
                PointsLedger.points != stmt.excluded.points,
                PointsLedger.description != stmt.excluded.description,
            ),
        )
        params = {
            "user_id": user_id,
            "source": PREDICTION_SOURCE,
            "points": points,
            "description": description,
            "created_at": now,
            "updated_at": now,
        }
        with _store_errors("upsert_prediction_points"):
            await self.dbm.write(stmt, params)

    async def points_by_source(self, user_id: int) -> Dict[str, int]:
        stmt = (
            select(PointsLedger.source, func.sum(PointsLedger.points).label("points"))
            .where(PointsLedger.user_id == user_id)
            .group_by(PointsLedger.source)
            .order_by(PointsLedger.source)
        )
        with _store_errors("points_by_source"):
            rows = await self.dbm.read(stmt)
        return {row["source"]: int(row["points"] or 0) for row in rows}

    async def add_entry(self, user_id: int, source: str, points: int, description: str) -> LedgerEntry:
        now = dt.datetime.now(dt.timezone.utc)
        row = PointsLedger(
            user_id=user_id,
            source=source,
            points=points,
            description=description,
            created_at=now,
            updated_at=now,
        )
        with _store_errors("add_entry"):
            async with self.dbm.session() as session:
                async with session.begin():
                    session.add(row)
                    await session.flush()
        return _to_entry(row)

    async def entries_for(self, user_id: int) -> List[LedgerEntry]:
        stmt = (
            select(PointsLedger)
            .where(PointsLedger.user_id == user_id)
            .order_by(PointsLedger.created_at, PointsLedger.id)
        )
        with _store_errors("entries_for"):
            async with self.dbm.session() as session:
                rows = (await session.execute(stmt)).scalars().all()
        return [_to_entry(row) for row in rows]

    async def totals_by_user(self) -> Dict[int, int]:
        stmt = (
            select(PointsLedger.user_id, func.sum(PointsLedger.points).label("points"))
            .group_by(PointsLedger.user_id)
            .order_by(PointsLedger.user_id)
        )
        with _store_errors("totals_by_user"):
            rows = await self.dbm.read(stmt)
        return {row["user_id"]: int(row["points"] or 0) for row in rows}


class SqlParticipantRepository:
    def __init__(self, dbm: DBM, eligible_status: str = "approved"):
        self.dbm = dbm
        self.eligible_status = eligible_status

    async def eligible_participants(self) -> List[ParticipantRecord]:
        stmt = (
            select(Participant.id, Participant.name)
            .where(Participant.registration_status == self.eligible_status)
            .order_by(Participant.id)
        )
        with _store_errors("eligible_participants"):
            rows = await self.dbm.read(stmt)
        return [ParticipantRecord(user_id=row["id"], name=row["name"]) for row in rows]

    async def get(self, user_id: int) -> ParticipantRecord | None:
        stmt = select(Participant.id, Participant.name).where(Participant.id == user_id)
        with _store_errors("participant_get"):
            rows = await self.dbm.read(stmt)
        if not rows:
            return None
        return ParticipantRecord(user_id=rows[0]["id"], name=rows[0]["name"])


@dataclass
class SqlRepositories:
    """Every repository bound to one database manager."""

    fields: SqlFieldRepository
    answers: SqlAnswerRepository
    outcomes: SqlOutcomeRepository
    ledger: SqlLedgerRepository
    participants: SqlParticipantRepository

    @classmethod
    def build(
        cls,
        dbm: DBM,
        form_key: str = "predictions",
        eligible_status: str = "approved",
    ) -> "SqlRepositories":
        return cls(
            fields=SqlFieldRepository(dbm, form_key),
            answers=SqlAnswerRepository(dbm, form_key),
            outcomes=SqlOutcomeRepository(dbm),
            ledger=SqlLedgerRepository(dbm),
            participants=SqlParticipantRepository(dbm, eligible_status),
        )


__all__ = [
    "SqlFieldRepository",
    "SqlAnswerRepository",
    "SqlOutcomeRepository",
    "SqlLedgerRepository",
    "SqlParticipantRepository",
    "SqlRepositories",
]
