"""Presentation helpers: financial-year labels, summary rows and CSV export.

Stored ratios are fractions; percentages only appear here, for display.
"""

from __future__ import annotations

import io
from collections.abc import Iterable

from esg_tracker.models.esg import ESGResponse
from esg_tracker.modules.responses.schemas import SummaryRow

SUMMARY_CSV_HEADERS = [
    "financial_year",
    "financial_year_label",
    "carbon_intensity",
    "renewable_pct",
    "diversity_pct",
    "community_pct",
]


def format_financial_year(year: int) -> str:
    """2023 -> "2023-24"."""
    return f"{year}-{(year + 1) % 100:02d}"


def _pct(ratio: float | None) -> float:
    return round((ratio or 0.0) * 100, 2)


def build_summary_rows(records: Iterable[ESGResponse]) -> list[SummaryRow]:
    """One chart/table row per record, oldest financial year first."""
    return [
        SummaryRow(
            financial_year=r.financial_year,
            financial_year_label=format_financial_year(r.financial_year),
            carbon_intensity=r.carbon_intensity or 0.0,
            renewable_pct=_pct(r.renewable_ratio),
            diversity_pct=_pct(r.diversity_ratio),
            community_pct=_pct(r.community_spend_ratio),
        )
        for r in sorted(records, key=lambda r: r.financial_year)
    ]


def export_summary_csv(rows: Iterable[SummaryRow]) -> str:
    """Return summary rows as a CSV string."""
    output = io.StringIO()
    output.write(",".join(SUMMARY_CSV_HEADERS) + "\n")
    for row in rows:
        output.write(
            ",".join(
                [
                    str(row.financial_year),
                    row.financial_year_label,
                    f"{row.carbon_intensity:.6f}",
                    f"{row.renewable_pct:.2f}",
                    f"{row.diversity_pct:.2f}",
                    f"{row.community_pct:.2f}",
                ]
            )
            + "\n"
        )
    return output.getvalue()
