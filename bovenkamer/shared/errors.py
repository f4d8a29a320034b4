"""Exception types raised at the I/O boundary of the scoring engine.

The scorer itself never raises; everything here belongs to the readers,
repositories and handlers around it.
"""

from __future__ import annotations


class BovenkamerError(Exception):
    """Base class for all engine errors."""

    pass


class ValidationError(BovenkamerError):
    """Raised when caller-supplied input is rejected."""

    pass


class DataAccessError(BovenkamerError):
    """Raised when the backing store is unreachable or a query fails."""

    pass


class LeaderboardUnavailable(BovenkamerError):
    """Raised when a leaderboard request cannot be answered consistently."""

    pass


class ReconcileTimeout(BovenkamerError):
    """Raised when a commit run exceeds the request timeout."""

    pass


__all__ = [
    "BovenkamerError",
    "ValidationError",
    "DataAccessError",
    "LeaderboardUnavailable",
    "ReconcileTimeout",
]
