"""Tests for the pure scorer."""

from dataclasses import replace

import pytest

from bovenkamer.config.scoring_params import NumericProximityParams, ScoringParams
from bovenkamer.scoring.scorer import (
    DESCRIPTION_PREFIX,
    count_entered_outcomes,
    describe_breakdown,
    score,
)
from bovenkamer.scoring.types import POINT_TIERS, ScoreResult


class TestScenarios:
    """The three reference scenarios from the game rules."""

    def test_scenario_a_wine_bottles(self, prediction_fields):
        actual = {"wine_bottles": 20}
        assert score(prediction_fields, {"wine_bottles": 20}, actual).breakdown == {"wine_bottles": 50}
        assert score(prediction_fields, {"wine_bottles": 22}, actual).breakdown == {"wine_bottles": 25}
        assert score(prediction_fields, {"wine_bottles": 30}, actual).breakdown == {"wine_bottles": 0}

    def test_scenario_b_first_sleeper(self, prediction_fields):
        actual = {"first_sleeper": "Jan"}
        assert score(prediction_fields, {"first_sleeper": "Jan"}, actual).total == 50
        assert score(prediction_fields, {"first_sleeper": "Piet"}, actual).breakdown == {"first_sleeper": 0}

        skipped = score(prediction_fields, {}, actual)
        assert "first_sleeper" not in skipped.breakdown
        assert skipped.total == 0

    def test_scenario_c_partial_outcome_counts(self, prediction_fields):
        actual = {"wine_bottles": 20, "dinner_served": 6}
        assert count_entered_outcomes(prediction_fields, actual) == 2


class TestScore:
    def test_actual_against_itself_is_full_marks(self, prediction_fields):
        actual = {
            "wine_bottles": 20,
            "first_sleeper": "Jan",
            "last_to_leave": "Kees",
            "dinner_served": 6,
            "snow_falls": False,
            "toast_text": "Proost",
        }
        result = score(prediction_fields, actual, actual)
        assert result.breakdown == {
            "wine_bottles": 50,
            "first_sleeper": 50,
            "last_to_leave": 50,
            "dinner_served": 50,
            "snow_falls": 50,
        }
        assert result.total == 250

    def test_unscored_fields_never_appear(self, prediction_fields):
        result = score(prediction_fields, {"toast_text": "Proost"}, {"toast_text": "Proost"})
        assert result == ScoreResult(total=0, breakdown={})

    def test_missing_actual_is_skipped_not_zero(self, prediction_fields):
        result = score(prediction_fields, {"wine_bottles": 30, "dinner_served": 6}, {"dinner_served": 6})
        assert result.points_for("wine_bottles") is None
        assert result.points_for("dinner_served") == 50

    def test_compared_miss_is_distinguishable_from_skip(self, prediction_fields):
        result = score(
            prediction_fields,
            {"wine_bottles": 100, "first_sleeper": "Piet"},
            {"wine_bottles": 20},
        )
        assert result.points_for("wine_bottles") == 0
        assert result.points_for("first_sleeper") is None

    def test_none_values_count_as_absent(self, prediction_fields):
        result = score(prediction_fields, {"wine_bottles": None}, {"wine_bottles": 20})
        assert result.breakdown == {}

    def test_type_mismatch_is_treated_as_absent(self, prediction_fields):
        result = score(
            prediction_fields,
            {"wine_bottles": "twenty", "dinner_served": True, "snow_falls": "true"},
            {"wine_bottles": 20, "dinner_served": 6, "snow_falls": True},
        )
        assert "wine_bottles" not in result.breakdown
        assert "dinner_served" not in result.breakdown
        assert result.breakdown["snow_falls"] == 0

    def test_inactive_fields_are_ignored(self, prediction_fields):
        fields = [replace(f, is_active=False) if f.key == "wine_bottles" else f for f in prediction_fields]
        result = score(fields, {"wine_bottles": 20}, {"wine_bottles": 20})
        assert result.breakdown == {}

    def test_breakdown_follows_field_order(self, prediction_fields):
        shuffled = list(reversed(prediction_fields))
        actual = {"snow_falls": True, "wine_bottles": 20, "dinner_served": 6}
        result = score(shuffled, actual, actual)
        assert list(result.breakdown) == ["wine_bottles", "dinner_served", "snow_falls"]

    def test_every_score_is_a_tier(self, prediction_fields):
        actual = {"wine_bottles": 20, "dinner_served": 6, "first_sleeper": "Jan"}
        for wine in range(0, 45):
            for dinner in range(0, 12):
                result = score(
                    prediction_fields,
                    {"wine_bottles": wine, "dinner_served": dinner, "first_sleeper": "Jan"},
                    actual,
                )
                assert set(result.breakdown.values()) <= POINT_TIERS
                assert result.total == sum(result.breakdown.values())

    def test_params_override(self, prediction_fields):
        params = ScoringParams(numeric=NumericProximityParams(close_pct=5, near_pct=10))
        result = score(prediction_fields, {"wine_bottles": 22}, {"wine_bottles": 20}, params=params)
        assert result.breakdown == {"wine_bottles": 10}

    def test_empty_inputs(self, prediction_fields):
        assert score([], {"wine_bottles": 20}, {"wine_bottles": 20}).total == 0
        assert score(prediction_fields, {}, {}).total == 0


class TestTargetedRecompute:
    def test_changing_one_outcome_only_moves_that_field(self, prediction_fields):
        predicted = {"wine_bottles": 22, "first_sleeper": "Jan", "dinner_served": 7}
        before = score(prediction_fields, predicted, {"wine_bottles": 20, "first_sleeper": "Jan", "dinner_served": 6})
        after = score(prediction_fields, predicted, {"wine_bottles": 40, "first_sleeper": "Jan", "dinner_served": 6})

        assert before.breakdown["wine_bottles"] == 25
        assert after.breakdown["wine_bottles"] == 0
        for key in ("first_sleeper", "dinner_served"):
            assert before.breakdown[key] == after.breakdown[key]

    def test_change_within_bucket_changes_nothing(self, prediction_fields):
        predicted = {"wine_bottles": 21}
        before = score(prediction_fields, predicted, {"wine_bottles": 20})
        after = score(prediction_fields, predicted, {"wine_bottles": 20.5})
        assert before == after


class TestDescribeBreakdown:
    def test_format(self):
        result = ScoreResult(total=75, breakdown={"wine_bottles": 25, "first_sleeper": 50})
        assert describe_breakdown(result) == DESCRIPTION_PREFIX + '{"wine_bottles":25,"first_sleeper":50}'

    def test_stable_for_equal_input(self, prediction_fields):
        actual = {"wine_bottles": 20}
        first = describe_breakdown(score(prediction_fields, {"wine_bottles": 22}, actual))
        second = describe_breakdown(score(prediction_fields, {"wine_bottles": 22}, actual))
        assert first == second

    @pytest.mark.parametrize("breakdown", [{}, {"a": 0}])
    def test_empty_and_zero(self, breakdown):
        text = describe_breakdown(ScoreResult(total=0, breakdown=breakdown))
        assert text.startswith(DESCRIPTION_PREFIX)


class TestCountEnteredOutcomes:
    def test_ignores_unscored_and_unknown_keys(self, prediction_fields):
        actual = {"wine_bottles": 20, "toast_text": "x", "not_a_field": 3, "first_sleeper": None}
        assert count_entered_outcomes(prediction_fields, actual) == 1

    def test_empty_outcome(self, prediction_fields):
        assert count_entered_outcomes(prediction_fields, {}) == 0
