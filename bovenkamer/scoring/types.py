"""Type definitions and constants for the scoring system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from bovenkamer.shared.enums import FieldType, LedgerSource


# Point tiers. Every per-field score is one of these.
POINTS_EXACT = 50
POINTS_CLOSE = 25
POINTS_NEAR = 10
POINTS_MISS = 0

POINT_TIERS = frozenset({POINTS_EXACT, POINTS_CLOSE, POINTS_NEAR, POINTS_MISS})

PREDICTION_SOURCE = LedgerSource.PREDICTION.value


@dataclass(frozen=True)
class ScoringField:
    """One question of the prediction form, as seen by the scorer."""

    key: str
    label: str
    type: FieldType
    options: Mapping[str, Any] = field(default_factory=dict)
    section_order: int = 0
    field_order: int = 0
    is_active: bool = True
    section_key: Optional[str] = None
    section_label: Optional[str] = None
    field_type: Optional[str] = None  # raw stored type, e.g. "slider"

    @property
    def sort_key(self) -> Tuple[int, int, str]:
        return (self.section_order, self.field_order, self.key)


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one participant.

    ``breakdown`` only holds fields that were actually compared, in field
    order. A field missing from it was skipped; a field mapped to 0 was
    compared and missed.
    """

    total: int
    breakdown: Dict[str, int]

    def points_for(self, key: str) -> Optional[int]:
        return self.breakdown.get(key)

    @classmethod
    def empty(cls) -> "ScoreResult":
        return cls(total=0, breakdown={})


@dataclass(frozen=True)
class OutcomeRecord:
    """The single organizer-entered record of actual outcomes."""

    values: Dict[str, Any]
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None

    @classmethod
    def empty(cls) -> "OutcomeRecord":
        return cls(values={})

    @property
    def entered_keys(self) -> List[str]:
        return sorted(k for k, v in self.values.items() if v is not None)

    def merged_values(self, updates: Mapping[str, Any], replace: bool = False) -> Dict[str, Any]:
        """The mapping after applying ``updates``; a None value removes its key."""
        merged: Dict[str, Any] = {} if replace else dict(self.values)
        for key, value in updates.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        return merged


@dataclass(frozen=True)
class LedgerEntry:
    id: Optional[int]
    user_id: int
    source: str
    points: int
    description: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Participant:
    user_id: int
    name: str


__all__ = [
    "POINTS_EXACT",
    "POINTS_CLOSE",
    "POINTS_NEAR",
    "POINTS_MISS",
    "POINT_TIERS",
    "PREDICTION_SOURCE",
    "ScoringField",
    "ScoreResult",
    "OutcomeRecord",
    "LedgerEntry",
    "Participant",
]
