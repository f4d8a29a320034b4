from __future__ import annotations

from enum import Enum


class FieldType(str, Enum):
    """Comparison strategy of a prediction question."""

    NUMERIC = "numeric"
    TIME = "time"
    EXACT = "exact"
    UNSCORED = "unscored"


class StoredFieldType(str, Enum):
    """Field types as configured in the dynamic form system."""

    SLIDER = "slider"
    STAR_RATING = "star_rating"
    TIME = "time"
    SELECT_PARTICIPANT = "select_participant"
    BOOLEAN = "boolean"
    SELECT_OPTIONS = "select_options"
    RADIO_GROUP = "radio_group"
    CHECKBOX_GROUP = "checkbox_group"
    TEXT_SHORT = "text_short"
    TEXT_LONG = "text_long"


class LedgerSource(str, Enum):
    REGISTRATION = "registration"
    PREDICTION = "prediction"
    QUIZ = "quiz"
    GAME = "game"
    BONUS = "bonus"


__all__ = ["FieldType", "StoredFieldType", "LedgerSource"]
