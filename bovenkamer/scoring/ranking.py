"""Leaderboard ordering and summary statistics."""

from __future__ import annotations

from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

import numpy as np

from bovenkamer.config.scoring_params import PointsBand, ScoringParams, get_scoring_params

T = TypeVar("T")


def standing_key(total_points: int, user_id: int) -> tuple:
    """Total order used by every leaderboard: points desc, then user id asc."""
    return (-total_points, user_id)


def sort_standings(
    items: Iterable[T],
    points: Callable[[T], int] = attrgetter("total_points"),
    user_id: Callable[[T], int] = attrgetter("user_id"),
) -> List[T]:
    return sorted(items, key=lambda item: standing_key(points(item), user_id(item)))


def rank_of(
    target_user_id: int,
    ordered: Sequence[T],
    user_id: Callable[[T], int] = attrgetter("user_id"),
) -> Optional[int]:
    """1-based position of a user in an already sorted sequence."""
    for position, item in enumerate(ordered, start=1):
        if user_id(item) == target_user_id:
            return position
    return None


@dataclass(frozen=True)
class SummaryStats:
    total_participants: int
    total_points: int
    average_points: int
    distribution: Dict[str, int]


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def summarize(totals: Sequence[int], params: ScoringParams | None = None) -> SummaryStats:
    """Aggregate participant totals into the leaderboard summary.

    Args:
        totals: One total per participant
        params: Scoring params carrying the distribution bands

    Returns:
        SummaryStats; the average is rounded half up, 0 when empty
    """
    params = params or get_scoring_params()
    arr = np.asarray(list(totals), dtype=np.int64)

    if arr.size == 0:
        return SummaryStats(
            total_participants=0,
            total_points=0,
            average_points=0,
            distribution={band.label: 0 for band in params.summary.bands},
        )

    return SummaryStats(
        total_participants=int(arr.size),
        total_points=int(arr.sum()),
        average_points=_round_half_up(float(arr.mean())),
        distribution={band.label: _count_in_band(arr, band) for band in params.summary.bands},
    )


def _count_in_band(arr: Any, band: PointsBand) -> int:
    mask = arr >= band.min_points
    if band.max_points is not None:
        mask &= arr <= band.max_points
    return int(np.count_nonzero(mask))


__all__ = [
    "standing_key",
    "sort_standings",
    "rank_of",
    "SummaryStats",
    "summarize",
]
