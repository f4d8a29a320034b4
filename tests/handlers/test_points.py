"""Tests for manual point adjustments."""

import pytest

from bovenkamer.handlers.points import ADJUSTABLE_SOURCES, PointsAdjuster
from bovenkamer.shared.errors import ValidationError
from bovenkamer.shared.logging import AUDIT_LEVEL_NUM


@pytest.fixture
def adjuster(repos, mock_audit):
    return PointsAdjuster(ledger=repos.ledger, participants=repos.participants, audit=mock_audit)


class TestAdjust:
    @pytest.mark.asyncio
    async def test_appends_entry(self, adjuster, repos, mock_audit):
        entry = await adjuster.adjust(1, "quiz", 15, "Quiz ronde 2", "Sander")

        assert entry.user_id == 1
        assert entry.source == "quiz"
        assert entry.points == 15
        assert entry.description == "Quiz ronde 2 (door Sander)"
        assert await repos.ledger.points_by_source(1) == {"quiz": 15}

        level, payload = mock_audit.logger.log.call_args[0]
        assert level == AUDIT_LEVEL_NUM
        assert payload["new_total"] == 15

    @pytest.mark.asyncio
    async def test_negative_adjustment_within_total(self, adjuster, repos):
        await adjuster.adjust(1, "game", 20, "Sjoelen", "Sander")
        await adjuster.adjust(1, "game", -20, "Correctie", "Sander")

        assert sum((await repos.ledger.points_by_source(1)).values()) == 0

    @pytest.mark.asyncio
    async def test_total_may_not_drop_below_zero(self, adjuster, repos):
        with pytest.raises(ValidationError, match="Anna"):
            await adjuster.adjust(1, "bonus", -1, "Te laat", "Sander")
        assert repos.ledger.rows == []

    def test_prediction_source_is_not_adjustable(self):
        assert "prediction" not in ADJUSTABLE_SOURCES

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source,points,reason",
        [
            ("prediction", 10, "Handmatig"),
            ("pub_crawl", 10, "Handmatig"),
            ("quiz", 0, "Handmatig"),
            ("quiz", 2.5, "Handmatig"),
            ("quiz", True, "Handmatig"),
            ("quiz", 10, "   "),
        ],
    )
    async def test_rejects_invalid_input(self, adjuster, repos, source, points, reason):
        with pytest.raises(ValidationError):
            await adjuster.adjust(1, source, points, reason, "Sander")
        assert repos.ledger.rows == []

    @pytest.mark.asyncio
    async def test_unknown_participant(self, adjuster):
        with pytest.raises(ValidationError, match="unknown participant"):
            await adjuster.adjust(42, "quiz", 10, "Quiz", "Sander")
