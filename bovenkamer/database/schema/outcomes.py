"""The single organizer-entered outcome record."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JsonType, utcnow


OUTCOME_ROW_ID = 1


class PredictionOutcome(Base):
    __tablename__ = "prediction_outcome"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        default=OUTCOME_ROW_ID,
        comment="Always 1; there is one outcome record",
    )
    results: Mapped[dict[str, Any]] = mapped_column(
        JsonType,
        nullable=False,
        default=dict,
        comment="field_key -> actual value",
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("participant.id", ondelete="SET NULL"),
    )

    __table_args__ = (CheckConstraint("id = 1", name="singleton"),)


__all__ = ["OUTCOME_ROW_ID", "PredictionOutcome"]
