"""Dynamic form definitions and the answers submitted against them."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JsonType, utcnow


class FormDefinition(Base):
    __tablename__ = "form_definition"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Stable form key, e.g. 'predictions'",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    active_version: Mapped[int | None] = mapped_column(
        Integer,
        comment="Version whose sections are live; NULL when the form is unpublished",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("key", name="uq_form_definition_key"),)


class FormSection(Base):
    __tablename__ = "form_section"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    form_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("form_definition.id", ondelete="CASCADE"),
        nullable=False,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_form_section_form_version", "form_id", "version"),
    )


class FormField(Base):
    __tablename__ = "form_field"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    section_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("form_section.id", ondelete="CASCADE"),
        nullable=False,
    )
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    field_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="Stored input type (slider, time, boolean, select_participant, ...)",
    )
    options: Mapped[dict[str, Any]] = mapped_column(
        JsonType,
        nullable=False,
        default=dict,
        comment="Type-specific settings: min/max/unit for sliders, choices for selects",
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("section_id", "key", name="uq_form_field_section_key"),
    )


class FormResponse(Base):
    """One answer of one participant to one field.

    Exactly one of the value columns is meaningful, chosen by the field type.
    """

    __tablename__ = "form_response"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("participant.id", ondelete="CASCADE"),
        nullable=False,
    )
    field_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("form_field.id", ondelete="CASCADE"),
        nullable=False,
    )
    text: Mapped[str | None] = mapped_column(Text)
    number: Mapped[float | None] = mapped_column(Float)
    boolean: Mapped[bool | None] = mapped_column(Boolean)
    participant_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("participant.id", ondelete="SET NULL"),
    )
    json_value: Mapped[Any] = mapped_column(JsonType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("ix_form_response_user_field", "user_id", "field_id"),
    )


__all__ = ["FormDefinition", "FormSection", "FormField", "FormResponse"]
