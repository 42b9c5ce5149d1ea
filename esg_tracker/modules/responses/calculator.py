"""
Derived ESG ratios. Deterministic, side-effect free, never raises.

Every ratio is numerator / denominator with one guard: a denominator that is
missing, zero or negative yields 0.0. Results are not rounded or clamped;
renewable > total electricity gives a ratio above 1.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

Number = int | float


def _ratio(numerator: Number | None, denominator: Number | None) -> float:
    if denominator is None or not denominator > 0:
        return 0.0
    result = float(numerator or 0) / float(denominator)
    if not math.isfinite(result):
        return 0.0
    return result


def compute_carbon_intensity(carbon_emissions: Number | None, total_revenue: Number | None) -> float:
    """Emissions per unit of revenue."""
    return _ratio(carbon_emissions, total_revenue)


def compute_renewable_ratio(renewable_electricity: Number | None, total_electricity: Number | None) -> float:
    """Share of electricity from renewable sources, as a fraction."""
    return _ratio(renewable_electricity, total_electricity)


def compute_diversity_ratio(female_employees: Number | None, total_employees: Number | None) -> float:
    """Share of female employees, as a fraction."""
    return _ratio(female_employees, total_employees)


def compute_community_spend_ratio(community_investment: Number | None, total_revenue: Number | None) -> float:
    """Community investment per unit of revenue, as a fraction."""
    return _ratio(community_investment, total_revenue)


def derive_ratios(raw: Mapping[str, Any]) -> dict[str, float]:
    """Apply all four ratio functions to a mapping of raw ESG fields."""
    return {
        "carbon_intensity": compute_carbon_intensity(
            raw.get("carbon_emissions"), raw.get("total_revenue")
        ),
        "renewable_ratio": compute_renewable_ratio(
            raw.get("renewable_electricity"), raw.get("total_electricity")
        ),
        "diversity_ratio": compute_diversity_ratio(
            raw.get("female_employees"), raw.get("total_employees")
        ),
        "community_spend_ratio": compute_community_spend_ratio(
            raw.get("community_investment"), raw.get("total_revenue")
        ),
    }
