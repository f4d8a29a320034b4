"""Generic points ledger."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


PREDICTION_ROW_PREDICATE = "source = 'prediction'"


class PointsLedger(Base):
    __tablename__ = "points_ledger"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("participant.id", ondelete="CASCADE"),
        nullable=False,
    )
    source: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="registration / prediction / quiz / game / bonus",
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_points_ledger_user_source", "user_id", "source"),
        # at most one prediction row per participant; other sources append freely
        Index(
            "uq_points_ledger_prediction",
            "user_id",
            "source",
            unique=True,
            sqlite_where=text(PREDICTION_ROW_PREDICATE),
            postgresql_where=text(PREDICTION_ROW_PREDICATE),
        ),
    )


__all__ = ["PREDICTION_ROW_PREDICATE", "PointsLedger"]
