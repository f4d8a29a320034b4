"""Field classification and ordering."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List

from bovenkamer.shared.enums import FieldType, StoredFieldType
from bovenkamer.shared.errors import ValidationError

from .determinism import normalize_number, to_decimal
from .types import POINTS_EXACT, ScoringField


_STORED_TO_FIELD_TYPE = {
    StoredFieldType.SLIDER.value: FieldType.NUMERIC,
    StoredFieldType.STAR_RATING.value: FieldType.NUMERIC,
    StoredFieldType.TIME.value: FieldType.TIME,
    StoredFieldType.SELECT_PARTICIPANT.value: FieldType.EXACT,
    StoredFieldType.BOOLEAN.value: FieldType.EXACT,
    StoredFieldType.SELECT_OPTIONS.value: FieldType.EXACT,
    StoredFieldType.RADIO_GROUP.value: FieldType.EXACT,
    StoredFieldType.CHECKBOX_GROUP.value: FieldType.UNSCORED,
    StoredFieldType.TEXT_SHORT.value: FieldType.UNSCORED,
    StoredFieldType.TEXT_LONG.value: FieldType.UNSCORED,
}

if set(_STORED_TO_FIELD_TYPE) != {t.value for t in StoredFieldType}:
    raise RuntimeError("every stored field type needs a FieldType mapping")


def classify_field_type(stored_type: str | None) -> FieldType:
    """Map a stored form field type onto its comparison strategy.

    Unknown types are never scored.
    """
    if stored_type is None:
        return FieldType.UNSCORED
    return _STORED_TO_FIELD_TYPE.get(stored_type, FieldType.UNSCORED)


def is_scoreable(field: ScoringField) -> bool:
    return field.is_active and field.type is not FieldType.UNSCORED


def scoreable_fields(fields: Iterable[ScoringField]) -> List[ScoringField]:
    return [f for f in order_fields(fields) if is_scoreable(f)]


def max_points(fields: Iterable[ScoringField]) -> int:
    """Highest prediction total a participant can reach."""
    return POINTS_EXACT * len(scoreable_fields(fields))


def order_fields(fields: Iterable[ScoringField]) -> List[ScoringField]:
    return sorted(fields, key=lambda f: f.sort_key)


# ─────────────────────────────────────────────────────────────────────────────
# Outcome values
# ─────────────────────────────────────────────────────────────────────────────

# answers to these are read from the text column
_TEXT_CHOICE_TYPES = frozenset({
    StoredFieldType.SELECT_OPTIONS.value,
    StoredFieldType.RADIO_GROUP.value,
})

_BOOLEAN_WORDS = {"true": True, "false": False}


def _outcome_number(key: str, value: Any) -> Any:
    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"{key}={value!r} is not a number") from None
    d = to_decimal(value, key)
    if d == d.to_integral_value():
        return int(d)
    return float(d)


def coerce_outcome_value(field: ScoringField, value: Any) -> Any:
    """Convert an organizer-entered value to the shape answers to ``field`` have.

    A radio group answered with the text ``"2"`` needs the outcome ``"2"``,
    not ``2``. Values for fields that are not scored are returned unchanged.

    Raises:
        ValidationError: The value cannot take the field's shape
    """
    if value is None or not is_scoreable(field):
        return value

    if field.type in (FieldType.NUMERIC, FieldType.TIME):
        return _outcome_number(field.key, value)

    stored = field.field_type
    if stored in _TEXT_CHOICE_TYPES:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float, Decimal)):
            return str(normalize_number(value))
        if isinstance(value, str):
            return value
    elif stored == StoredFieldType.BOOLEAN.value:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _BOOLEAN_WORDS:
            return _BOOLEAN_WORDS[value.strip().lower()]
    elif stored == StoredFieldType.SELECT_PARTICIPANT.value:
        if not isinstance(value, bool) and isinstance(value, (int, float, str, Decimal)):
            number = _outcome_number(field.key, value)
            if isinstance(number, int):
                return number
    else:
        return value

    raise ValidationError(f"{field.key}={value!r} does not fit a {stored} question")


__all__ = [
    "classify_field_type",
    "is_scoreable",
    "scoreable_fields",
    "max_points",
    "order_fields",
    "coerce_outcome_value",
]
