"""Comparison rules, one per field type.

Each ``FieldType`` member maps to exactly one ``ComparisonRule``. A rule
turns a (predicted, actual) pair into one of the point tiers, or returns
None when the pair is not comparable (wrong shape for the field type, or
the field is never scored). Rules never raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from bovenkamer.config.scoring_params import (
    NumericProximityParams,
    ScoringParams,
    TimeProximityParams,
    get_scoring_params,
)
from bovenkamer.shared.enums import FieldType

from .determinism import as_number
from .types import POINTS_CLOSE, POINTS_EXACT, POINTS_MISS, POINTS_NEAR


_HUNDRED = Decimal("100")
_NUMBER_TYPES = (int, float, Decimal)


class ComparisonRule(ABC):
    field_type: FieldType

    @abstractmethod
    def compare(self, predicted: Any, actual: Any) -> Optional[int]:
        """Points for this pair, or None when the pair is not scored."""


class NumericRule(ComparisonRule):
    """Percentage proximity against the actual value."""

    field_type = FieldType.NUMERIC

    def __init__(self, params: NumericProximityParams):
        self.params = params

    def _within(self, diff: Decimal, actual: Decimal, pct: Decimal) -> bool:
        # diff / |actual| * 100 <= pct, without dividing
        if actual == 0:
            return _HUNDRED <= pct
        return diff * _HUNDRED <= pct * abs(actual)

    def compare(self, predicted: Any, actual: Any) -> Optional[int]:
        p = as_number(predicted)
        a = as_number(actual)
        if p is None or a is None:
            return None
        diff = abs(p - a)
        if diff == 0:
            return POINTS_EXACT
        if self._within(diff, a, self.params.close_pct):
            return POINTS_CLOSE
        if self._within(diff, a, self.params.near_pct):
            return POINTS_NEAR
        return POINTS_MISS


class TimeRule(ComparisonRule):
    """Distance in time-slider steps."""

    field_type = FieldType.TIME

    def __init__(self, params: TimeProximityParams):
        self.params = params

    def compare(self, predicted: Any, actual: Any) -> Optional[int]:
        p = as_number(predicted)
        a = as_number(actual)
        if p is None or a is None:
            return None
        diff = abs(p - a)
        if diff == 0:
            return POINTS_EXACT
        if diff <= self.params.close_units:
            return POINTS_CLOSE
        if diff <= self.params.near_units:
            return POINTS_NEAR
        return POINTS_MISS


def _kind(value: Any) -> type:
    if isinstance(value, bool):
        return bool
    if isinstance(value, _NUMBER_TYPES):
        return Decimal
    return type(value)


def strict_equals(a: Any, b: Any) -> bool:
    """Equality that also requires the same kind of value.

    ``True`` never equals ``1`` or ``"true"``. ints, floats and Decimals
    count as one kind, so ``3 == 3.0``.
    """
    if _kind(a) is not _kind(b):
        return False
    return a == b


class ExactRule(ComparisonRule):
    field_type = FieldType.EXACT

    def compare(self, predicted: Any, actual: Any) -> Optional[int]:
        return POINTS_EXACT if strict_equals(predicted, actual) else POINTS_MISS


class UnscoredRule(ComparisonRule):
    field_type = FieldType.UNSCORED

    def compare(self, predicted: Any, actual: Any) -> Optional[int]:
        return None


def build_rules(params: ScoringParams | None = None) -> Dict[FieldType, ComparisonRule]:
    """Build the dispatch table for the given thresholds."""
    params = params or get_scoring_params()
    rules: Dict[FieldType, ComparisonRule] = {
        FieldType.NUMERIC: NumericRule(params.numeric),
        FieldType.TIME: TimeRule(params.time),
        FieldType.EXACT: ExactRule(),
        FieldType.UNSCORED: UnscoredRule(),
    }
    _check_exhaustive(rules)
    return rules


def _check_exhaustive(rules: Mapping[FieldType, ComparisonRule]) -> None:
    missing = set(FieldType) - set(rules)
    if missing:
        raise RuntimeError(f"no comparison rule for field types: {sorted(m.value for m in missing)}")
    for field_type, rule in rules.items():
        if rule.field_type is not field_type:
            raise RuntimeError(f"rule {type(rule).__name__} registered under {field_type.value}")


DEFAULT_RULES = build_rules()


__all__ = [
    "ComparisonRule",
    "NumericRule",
    "TimeRule",
    "ExactRule",
    "UnscoredRule",
    "strict_equals",
    "build_rules",
    "DEFAULT_RULES",
]
