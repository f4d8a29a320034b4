"""Manual point adjustments by an organizer."""

from __future__ import annotations

import logging
from typing import Optional

from bovenkamer.repositories.interface import LedgerRepository, ParticipantRepository
from bovenkamer.scoring.audit import ScoringAuditLogger, get_audit_logger
from bovenkamer.scoring.types import LedgerEntry
from bovenkamer.shared.enums import LedgerSource
from bovenkamer.shared.errors import ValidationError

logger = logging.getLogger(__name__)

# the prediction source belongs to the reconciler
ADJUSTABLE_SOURCES = frozenset(
    s.value for s in (LedgerSource.REGISTRATION, LedgerSource.QUIZ, LedgerSource.GAME, LedgerSource.BONUS)
)


class PointsAdjuster:
    def __init__(
        self,
        *,
        ledger: LedgerRepository,
        participants: ParticipantRepository,
        audit: Optional[ScoringAuditLogger] = None,
    ):
        self.ledger = ledger
        self.participants = participants
        self.audit = audit or get_audit_logger()

    async def adjust(
        self,
        user_id: int,
        source: str,
        points: int,
        reason: str,
        actor: str,
    ) -> LedgerEntry:
        """Append a signed point adjustment to the ledger.

        Raises:
            ValidationError: Unknown source, zero or non-integer points, empty
                reason, unknown participant, or a total that would drop below 0
        """
        if source not in ADJUSTABLE_SOURCES:
            raise ValidationError(f"source must be one of {sorted(ADJUSTABLE_SOURCES)}, got {source!r}")
        if isinstance(points, bool) or not isinstance(points, int) or points == 0:
            raise ValidationError("points must be a non-zero integer")
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("reason is required")

        participant = await self.participants.get(user_id)
        if participant is None:
            raise ValidationError(f"unknown participant {user_id}")

        current_total = sum((await self.ledger.points_by_source(user_id)).values())
        new_total = current_total + points
        if new_total < 0:
            raise ValidationError(
                f"adjustment would bring {participant.name} to {new_total} points"
            )

        entry = await self.ledger.add_entry(user_id, source, points, f"{reason} (door {actor})")
        self.audit.log_points_adjustment(user_id, source, points, actor, new_total)
        logger.info({"points": {"event": "adjusted", "user_id": user_id, "source": source, "points": points}})
        return entry


__all__ = ["ADJUSTABLE_SOURCES", "PointsAdjuster"]
