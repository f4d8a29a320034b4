"""Turn stored form responses into one typed value per question key.

Responses are stored with one column per value shape (``text``,
``number``, ``boolean``, ``participant_id``, ``json_value``); which column
is meaningful depends on the stored field type.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from bovenkamer.shared.enums import StoredFieldType

from .determinism import normalize_number


_COLUMN_FOR_TYPE = {
    StoredFieldType.SLIDER.value: "number",
    StoredFieldType.STAR_RATING.value: "number",
    StoredFieldType.TIME.value: "number",
    StoredFieldType.SELECT_PARTICIPANT.value: "participant_id",
    StoredFieldType.BOOLEAN.value: "boolean",
    StoredFieldType.SELECT_OPTIONS.value: "text",
    StoredFieldType.RADIO_GROUP.value: "text",
    StoredFieldType.TEXT_SHORT.value: "text",
    StoredFieldType.TEXT_LONG.value: "text",
    StoredFieldType.CHECKBOX_GROUP.value: "json_value",
}

_FALLBACK_COLUMNS = ("text", "number", "boolean", "participant_id")


@dataclass(frozen=True)
class StoredResponse:
    """A single stored answer row joined with its field."""

    id: int
    field_key: str
    field_type: Optional[str]
    text: Optional[str] = None
    number: Optional[float] = None
    boolean: Optional[bool] = None
    participant_id: Optional[int] = None
    json_value: Any = None
    updated_at: Optional[datetime] = None


def extract_value(response: StoredResponse) -> Any:
    """Pick the value column that matches the field's stored type.

    Returns None when that column is empty.
    """
    column = _COLUMN_FOR_TYPE.get(response.field_type or "")
    if column is None:
        for name in _FALLBACK_COLUMNS:
            value = getattr(response, name)
            if value is not None:
                return normalize_number(value)
        return None
    return normalize_number(getattr(response, column))


def _recency(response: StoredResponse) -> Tuple[bool, datetime, int]:
    # rows without a timestamp lose to rows with one
    stamp = response.updated_at or datetime.min
    return (response.updated_at is not None, stamp.replace(tzinfo=None), response.id)


def flatten_responses(responses: Iterable[StoredResponse]) -> Dict[str, Any]:
    """Collapse stored rows into ``{field_key: value}``.

    When a key has several rows the most recently updated one wins, ties
    going to the highest row id. Empty values are left out.
    """
    latest: Dict[str, StoredResponse] = {}
    for response in responses:
        current = latest.get(response.field_key)
        if current is None or _recency(response) > _recency(current):
            latest[response.field_key] = response

    values: Dict[str, Any] = {}
    for key in sorted(latest):
        value = extract_value(latest[key])
        if value is not None:
            values[key] = value
    return values


__all__ = ["StoredResponse", "extract_value", "flatten_responses"]
