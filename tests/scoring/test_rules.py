"""Tests for per-type comparison rules."""

from decimal import Decimal

import pytest

from bovenkamer.config.scoring_params import (
    NumericProximityParams,
    ScoringParams,
    TimeProximityParams,
)
from bovenkamer.scoring.rules import (
    DEFAULT_RULES,
    ExactRule,
    NumericRule,
    TimeRule,
    UnscoredRule,
    _check_exhaustive,
    build_rules,
    strict_equals,
)
from bovenkamer.shared.enums import FieldType


@pytest.fixture
def numeric():
    return NumericRule(NumericProximityParams())


@pytest.fixture
def time_rule():
    return TimeRule(TimeProximityParams())


class TestNumericRule:
    def test_exact_match(self, numeric):
        assert numeric.compare(20, 20) == 50

    @pytest.mark.parametrize("predicted", [22, 18])
    def test_ten_percent_is_inclusive(self, numeric, predicted):
        assert numeric.compare(predicted, 20) == 25

    def test_just_over_ten_percent(self, numeric):
        assert numeric.compare(22.0001, 20) == 10

    def test_twenty_five_percent_is_inclusive(self, numeric):
        assert numeric.compare(25, 20) == 10

    def test_just_over_twenty_five_percent(self, numeric):
        assert numeric.compare(25.01, 20) == 0

    def test_far_off(self, numeric):
        assert numeric.compare(30, 20) == 0

    def test_float_boundary_has_no_rounding_error(self, numeric):
        # 2.2 - 2 is 0.20000000000000018 in binary floating point
        assert numeric.compare(2.2, 2) == 25

    def test_negative_actual_uses_absolute_value(self, numeric):
        assert numeric.compare(-11, -10) == 25

    def test_zero_actual(self, numeric):
        assert numeric.compare(0, 0) == 50
        assert numeric.compare(1, 0) == 0

    def test_decimal_inputs(self, numeric):
        assert numeric.compare(Decimal("4.5"), Decimal("5")) == 25

    @pytest.mark.parametrize(
        "predicted,actual",
        [
            (True, 20),
            (20, False),
            ("20", 20),
            (float("nan"), 20),
            (float("inf"), 20),
            ([20], 20),
        ],
    )
    def test_wrong_shape_is_not_scored(self, numeric, predicted, actual):
        assert numeric.compare(predicted, actual) is None

    def test_custom_thresholds(self):
        rule = NumericRule(NumericProximityParams(close_pct=Decimal("5"), near_pct=Decimal("10")))
        assert rule.compare(22, 20) == 10
        assert rule.compare(21, 20) == 25
        assert rule.compare(23, 20) == 0


class TestTimeRule:
    @pytest.mark.parametrize(
        "predicted,expected",
        [(6, 50), (7, 25), (5, 25), (8, 10), (4, 10), (9, 0), (3, 0)],
    )
    def test_unit_distances(self, time_rule, predicted, expected):
        assert time_rule.compare(predicted, 6) == expected

    def test_bool_is_not_a_time(self, time_rule):
        assert time_rule.compare(True, 1) is None

    def test_string_is_not_a_time(self, time_rule):
        assert time_rule.compare("18:00", 6) is None


class TestExactRule:
    def test_equal_strings(self):
        assert ExactRule().compare("Jan", "Jan") == 50

    def test_different_strings(self):
        assert ExactRule().compare("Piet", "Jan") == 0

    def test_string_true_is_not_boolean_true(self):
        assert ExactRule().compare("true", True) == 0

    def test_one_is_not_true(self):
        assert ExactRule().compare(1, True) == 0
        assert ExactRule().compare(True, 1) == 0

    def test_booleans(self):
        assert ExactRule().compare(False, False) == 50
        assert ExactRule().compare(True, False) == 0

    def test_participant_ids(self):
        assert ExactRule().compare(7, 7) == 50
        assert ExactRule().compare(7, 8) == 0

    def test_case_sensitive(self):
        assert ExactRule().compare("jan", "Jan") == 0


class TestStrictEquals:
    def test_numbers_are_one_kind(self):
        assert strict_equals(3, 3.0)
        assert strict_equals(Decimal("3"), 3)

    def test_none_only_equals_none(self):
        assert strict_equals(None, None)
        assert not strict_equals(None, 0)


class TestUnscoredRule:
    def test_never_scores(self):
        assert UnscoredRule().compare("same", "same") is None


class TestDispatchTable:
    def test_every_field_type_has_a_rule(self):
        assert set(DEFAULT_RULES) == set(FieldType)

    def test_rules_are_registered_under_their_own_type(self):
        for field_type, rule in build_rules().items():
            assert rule.field_type is field_type

    def test_missing_rule_is_rejected(self):
        rules = build_rules()
        del rules[FieldType.TIME]
        with pytest.raises(RuntimeError, match="time"):
            _check_exhaustive(rules)

    def test_misregistered_rule_is_rejected(self):
        rules = build_rules()
        rules[FieldType.TIME] = ExactRule()
        with pytest.raises(RuntimeError):
            _check_exhaustive(rules)

    def test_build_rules_uses_params(self):
        params = ScoringParams(time=TimeProximityParams(close_units=2, near_units=4))
        rules = build_rules(params)
        assert rules[FieldType.TIME].compare(8, 6) == 25
        assert rules[FieldType.TIME].compare(10, 6) == 10
