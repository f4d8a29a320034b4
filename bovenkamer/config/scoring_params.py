"""Scoring thresholds and leaderboard presentation parameters.

All proximity boundaries live here so that the admin tooling, the commit
batch and the live leaderboard score with the same rules. Point tiers
themselves are fixed (see ``bovenkamer.scoring.types``); only the
distance at which each tier applies is configurable.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class NumericProximityParams(BaseModel):
    """Percentage bands for numeric (slider / star rating) questions."""

    close_pct: Decimal = Field(
        default=Decimal("10"),
        ge=Decimal("0"),
        le=Decimal("100"),
        description="Max percentage off the actual value that still earns the close tier (inclusive).",
    )
    near_pct: Decimal = Field(
        default=Decimal("25"),
        ge=Decimal("0"),
        le=Decimal("100"),
        description="Max percentage off the actual value that still earns the near tier (inclusive).",
    )

    @model_validator(mode="after")
    def _ordered(self) -> "NumericProximityParams":
        if self.close_pct > self.near_pct:
            raise ValueError("close_pct must not exceed near_pct")
        return self


class TimeProximityParams(BaseModel):
    """Unit bands for time-slider questions (one unit is one slider step)."""

    close_units: int = Field(
        default=1,
        ge=0,
        le=48,
        description="Max slider steps off that still earn the close tier (inclusive).",
    )
    near_units: int = Field(
        default=2,
        ge=0,
        le=48,
        description="Max slider steps off that still earn the near tier (inclusive).",
    )

    @model_validator(mode="after")
    def _ordered(self) -> "TimeProximityParams":
        if self.close_units > self.near_units:
            raise ValueError("close_units must not exceed near_units")
        return self


class PointsBand(BaseModel):
    label: str
    min_points: int
    max_points: Optional[int] = None  # open-ended when None


def _default_bands() -> List[PointsBand]:
    return [
        PointsBand(label="0-50", min_points=0, max_points=50),
        PointsBand(label="51-100", min_points=51, max_points=100),
        PointsBand(label="101-150", min_points=101, max_points=150),
        PointsBand(label="151-200", min_points=151, max_points=200),
        PointsBand(label="201+", min_points=201),
    ]


class SummaryParams(BaseModel):
    """Buckets used for the leaderboard points distribution."""

    bands: List[PointsBand] = Field(default_factory=_default_bands)


class ScoringParams(BaseModel):
    """Master configuration for all scoring parameters."""

    numeric: NumericProximityParams = Field(default_factory=NumericProximityParams)
    time: TimeProximityParams = Field(default_factory=TimeProximityParams)
    summary: SummaryParams = Field(default_factory=SummaryParams)


# Default instance for easy import
DEFAULT_SCORING_PARAMS = ScoringParams()


def get_scoring_params() -> ScoringParams:
    """Get the default scoring parameters (settings may carry an override)."""
    return DEFAULT_SCORING_PARAMS


__all__ = [
    "NumericProximityParams",
    "TimeProximityParams",
    "PointsBand",
    "SummaryParams",
    "ScoringParams",
    "DEFAULT_SCORING_PARAMS",
    "get_scoring_params",
]
