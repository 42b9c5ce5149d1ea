"""Pydantic schemas for the ESG responses API."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ── Requests ─────────────────────────────────────────────────────────────────


class ESGRawMetrics(BaseModel):
    # Unknown keys pass through to the store, which rejects protected
    # fields and drops derived ones. Strict: no bool or string coercion.
    model_config = ConfigDict(extra="allow", strict=True)

    # Environmental
    total_electricity: float | None = Field(None, ge=0)  # kWh
    renewable_electricity: float | None = Field(None, ge=0)  # kWh
    total_fuel: float | None = Field(None, ge=0)
    carbon_emissions: float | None = Field(None, ge=0)  # tCO2e

    # Social
    total_employees: float | None = Field(None, ge=0)
    female_employees: float | None = Field(None, ge=0)
    training_hours: float | None = Field(None, ge=0)
    community_investment: float | None = Field(None, ge=0)

    # Governance
    independent_board: float | None = Field(None, ge=0, le=100)  # %
    data_privacy_policy: bool | None = None
    total_revenue: float | None = Field(None, ge=0)


class ESGResponseUpsertRequest(ESGRawMetrics):
    financial_year: int  # 2023 == FY 2023-24


class ESGResponseUpdateRequest(ESGRawMetrics):
    pass


class BulkDeleteRequest(BaseModel):
    ids: list[uuid.UUID]


# ── Responses ────────────────────────────────────────────────────────────────


class ESGResponseOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    financial_year: int
    financial_year_label: str

    total_electricity: float
    renewable_electricity: float
    total_fuel: float
    carbon_emissions: float

    total_employees: float
    female_employees: float
    training_hours: float
    community_investment: float

    independent_board: float
    data_privacy_policy: bool | None
    total_revenue: float

    # Fractions in [0, 1] for well-formed inputs; multiply by 100 for display
    carbon_intensity: float
    renewable_ratio: float
    diversity_ratio: float
    community_spend_ratio: float

    is_deleted: bool
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BulkDeleteResponse(BaseModel):
    deleted: int


class SummaryRow(BaseModel):
    financial_year: int
    financial_year_label: str
    carbon_intensity: float
    renewable_pct: float
    diversity_pct: float
    community_pct: float
