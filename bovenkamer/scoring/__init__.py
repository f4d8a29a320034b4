"""Prediction scoring: comparison rules, the pure scorer and ranking helpers."""

from .fields import classify_field_type, is_scoreable, max_points, scoreable_fields
from .scorer import count_entered_outcomes, describe_breakdown, score
from .types import OutcomeRecord, ScoreResult, ScoringField

__all__ = [
    "classify_field_type",
    "is_scoreable",
    "max_points",
    "scoreable_fields",
    "count_entered_outcomes",
    "describe_breakdown",
    "score",
    "OutcomeRecord",
    "ScoreResult",
    "ScoringField",
]
