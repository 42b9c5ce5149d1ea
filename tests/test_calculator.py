"""Tests for the derived ESG ratio calculator."""

import math

import pytest

from esg_tracker.modules.responses.calculator import (
    compute_carbon_intensity,
    compute_community_spend_ratio,
    compute_diversity_ratio,
    compute_renewable_ratio,
    derive_ratios,
)

RATIO_FUNCTIONS = [
    compute_carbon_intensity,
    compute_renewable_ratio,
    compute_diversity_ratio,
    compute_community_spend_ratio,
]


class TestRatios:
    def test_reference_submission(self):
        assert compute_carbon_intensity(50, 1000) == pytest.approx(0.05)
        assert compute_renewable_ratio(50, 200) == pytest.approx(0.25)
        assert compute_diversity_ratio(4, 10) == pytest.approx(0.4)
        assert compute_community_spend_ratio(20, 1000) == pytest.approx(0.02)

    def test_no_rounding_inside_calculator(self):
        # 1/3 keeps full float precision; display rounding happens elsewhere
        assert compute_diversity_ratio(1, 3) == 1 / 3
        assert compute_carbon_intensity(1, 7_000_000) == pytest.approx(1.4285714e-07, rel=1e-6)

    def test_ratio_above_one_is_not_clamped(self):
        assert compute_renewable_ratio(300, 200) == pytest.approx(1.5)

    def test_missing_numerator_is_zero(self):
        assert compute_carbon_intensity(None, 1000) == 0.0


class TestZeroDenominatorGuard:
    @pytest.mark.parametrize("fn", RATIO_FUNCTIONS)
    @pytest.mark.parametrize("denominator", [0, 0.0, None, -5])
    def test_returns_zero(self, fn, denominator):
        result = fn(50, denominator)
        assert result == 0.0
        assert not math.isnan(result)

    @pytest.mark.parametrize("fn", RATIO_FUNCTIONS)
    def test_never_raises_on_non_finite(self, fn):
        assert fn(math.inf, 10) == 0.0
        assert fn(math.nan, 10) == 0.0
        assert fn(10, math.nan) == 0.0


class TestTotalityAndDeterminism:
    @pytest.mark.parametrize("fn", RATIO_FUNCTIONS)
    @pytest.mark.parametrize(
        "numerator,denominator",
        [(0, 0), (0, 1), (1, 1e-12), (1e12, 3), (123.456, 789.01), (7, 7)],
    )
    def test_finite_non_negative(self, fn, numerator, denominator):
        result = fn(numerator, denominator)
        assert math.isfinite(result)
        assert result >= 0

    @pytest.mark.parametrize("fn", RATIO_FUNCTIONS)
    def test_repeat_calls_are_bit_identical(self, fn):
        first = fn(123.456, 789.01)
        second = fn(123.456, 789.01)
        assert first.hex() == second.hex()


class TestDeriveRatios:
    def test_maps_raw_fields_to_all_four_ratios(self):
        ratios = derive_ratios(
            {
                "total_revenue": 1000,
                "carbon_emissions": 50,
                "total_electricity": 200,
                "renewable_electricity": 50,
                "total_employees": 10,
                "female_employees": 4,
                "community_investment": 20,
            }
        )
        assert ratios == pytest.approx(
            {
                "carbon_intensity": 0.05,
                "renewable_ratio": 0.25,
                "diversity_ratio": 0.4,
                "community_spend_ratio": 0.02,
            }
        )

    def test_empty_mapping_gives_zeros(self):
        assert derive_ratios({}) == {
            "carbon_intensity": 0.0,
            "renewable_ratio": 0.0,
            "diversity_ratio": 0.0,
            "community_spend_ratio": 0.0,
        }

    def test_zero_revenue_zeroes_revenue_based_ratios_only(self):
        ratios = derive_ratios(
            {"total_revenue": 0, "carbon_emissions": 50, "community_investment": 20,
             "total_electricity": 100, "renewable_electricity": 10}
        )
        assert ratios["carbon_intensity"] == 0.0
        assert ratios["community_spend_ratio"] == 0.0
        assert ratios["renewable_ratio"] == pytest.approx(0.1)
