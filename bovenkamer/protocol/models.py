"""Payload models returned to callers.

These are the public contract shapes of the commit and leaderboard
operations. Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``).
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class LeaderboardEntry(_Payload):
    user_id: int
    name: str
    rank: int = Field(..., ge=1)
    total_points: int
    prediction_points: int = Field(default=0, description="Live, recomputed on every request")
    registration_points: int = 0
    quiz_points: int = 0
    game_points: int = 0
    bonus_points: int = 0
    other_points: int = Field(default=0, description="Ledger sources without a dedicated column")
    breakdown: Dict[str, int] = Field(default_factory=dict)


class OutcomeStats(_Payload):
    outcome_fields_entered: int
    total_scoreable_fields: int
    outcome_last_updated: Optional[datetime] = None
    max_prediction_points: int = 0


class LiveLeaderboard(_Payload):
    leaderboard: List[LeaderboardEntry]
    stats: OutcomeStats


class ParticipantFailure(_Payload):
    user_id: int
    error: str


class CommitReport(_Payload):
    participants_processed: int
    total_points_awarded: int
    failures: List[ParticipantFailure] = Field(default_factory=list)
    commit_hash: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.failures


class BankedEntry(_Payload):
    rank: int = Field(..., ge=1)
    user_id: int
    name: str
    total_points: int


class CurrentStanding(_Payload):
    user_id: int
    total_points: int
    rank: int


class BankedLeaderboard(_Payload):
    leaderboard: List[BankedEntry]
    total_participants: int
    current_user: Optional[CurrentStanding] = None


class LeaderboardSummary(_Payload):
    total_participants: int
    total_points: int
    average_points: int
    points_distribution: Dict[str, int]


class ParticipantStanding(_Payload):
    entry: LeaderboardEntry
    total_participants: int
    max_prediction_points: int


__all__ = [
    "LeaderboardEntry",
    "OutcomeStats",
    "LiveLeaderboard",
    "ParticipantFailure",
    "CommitReport",
    "BankedEntry",
    "CurrentStanding",
    "BankedLeaderboard",
    "LeaderboardSummary",
    "ParticipantStanding",
]
