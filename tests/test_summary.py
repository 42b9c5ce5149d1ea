"""Tests for financial-year labels and summary export."""

import pytest

from esg_tracker.models.esg import ESGResponse
from esg_tracker.modules.responses.summary import (
    SUMMARY_CSV_HEADERS,
    build_summary_rows,
    export_summary_csv,
    format_financial_year,
)


@pytest.mark.parametrize(
    "year,label",
    [(2023, "2023-24"), (1999, "1999-00"), (2009, "2009-10"), (5, "5-06")],
)
def test_format_financial_year(year, label):
    assert format_financial_year(year) == label


def _record(year: int, **ratios) -> ESGResponse:
    values = {
        "carbon_intensity": 0.0,
        "renewable_ratio": 0.0,
        "diversity_ratio": 0.0,
        "community_spend_ratio": 0.0,
    }
    values.update(ratios)
    return ESGResponse(financial_year=year, **values)


def test_rows_sorted_oldest_first_and_scaled():
    rows = build_summary_rows(
        [
            _record(2024, renewable_ratio=0.123456),
            _record(2022, diversity_ratio=0.5, carbon_intensity=0.0123),
        ]
    )
    assert [r.financial_year for r in rows] == [2022, 2024]
    assert rows[0].diversity_pct == 50.0
    assert rows[0].carbon_intensity == 0.0123
    assert rows[1].renewable_pct == 12.35


def test_empty_export_has_header_only():
    assert export_summary_csv([]) == ",".join(SUMMARY_CSV_HEADERS) + "\n"
