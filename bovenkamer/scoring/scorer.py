"""Pure prediction scorer.

``score`` compares one participant's predictions to the outcome record
field by field. It performs no I/O and never raises, so the commit batch,
the live leaderboard and the tests all call it directly.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Mapping, Optional

from bovenkamer.config.scoring_params import ScoringParams
from bovenkamer.shared.enums import FieldType

from .fields import is_scoreable, order_fields
from .rules import DEFAULT_RULES, ComparisonRule, build_rules
from .types import ScoreResult, ScoringField


DESCRIPTION_PREFIX = "Prediction points: "


def score(
    fields: Iterable[ScoringField],
    predicted: Mapping[str, Any],
    actual: Mapping[str, Any],
    params: Optional[ScoringParams] = None,
    rules: Optional[Mapping[FieldType, ComparisonRule]] = None,
) -> ScoreResult:
    """Score one participant.

    A field is compared only when it is active and both the predicted and
    the actual value are present. Skipped fields do not appear in the
    breakdown at all; compared fields that missed appear with 0.

    Args:
        fields: Question definitions (inactive ones are ignored)
        predicted: ``{field_key: value}`` for the participant
        actual: ``{field_key: value}`` from the outcome record
        params: Threshold overrides; defaults to ``get_scoring_params()``
        rules: Prebuilt dispatch table, takes precedence over ``params``

    Returns:
        ScoreResult with the total and the per-field breakdown in field order
    """
    if rules is None:
        rules = build_rules(params) if params is not None else DEFAULT_RULES

    breakdown: Dict[str, int] = {}
    for field in order_fields(fields):
        if not field.is_active:
            continue
        p = predicted.get(field.key)
        a = actual.get(field.key)
        if p is None or a is None:
            continue
        points = rules[field.type].compare(p, a)
        if points is None:
            continue
        breakdown[field.key] = points

    return ScoreResult(total=sum(breakdown.values()), breakdown=breakdown)


def describe_breakdown(result: ScoreResult) -> str:
    """Human-readable ledger description for a score.

    Stable for equal input so repeated commits store identical text.
    """
    return DESCRIPTION_PREFIX + json.dumps(result.breakdown, separators=(",", ":"))


def count_entered_outcomes(fields: Iterable[ScoringField], actual: Mapping[str, Any]) -> int:
    """Number of scoreable fields that already have an outcome value."""
    return sum(1 for f in fields if is_scoreable(f) and actual.get(f.key) is not None)


__all__ = ["DESCRIPTION_PREFIX", "score", "describe_breakdown", "count_entered_outcomes"]
