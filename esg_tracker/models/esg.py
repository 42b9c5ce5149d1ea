"""ESG response model: one row of yearly metrics per user and financial year."""

from __future__ import annotations

import uuid

from sqlalchemy import Float, Index, Integer, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from esg_tracker.models.base import BaseModel


class ESGResponse(BaseModel):
    __tablename__ = "esg_responses"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    financial_year: Mapped[int] = mapped_column(Integer, nullable=False)  # 2023 == "2023-24"

    # ── Environmental ─────────────────────────────────────────────────────────
    total_electricity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    renewable_electricity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_fuel: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    carbon_emissions: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # ── Social ────────────────────────────────────────────────────────────────
    total_employees: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    female_employees: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    training_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    community_investment: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # ── Governance ────────────────────────────────────────────────────────────
    independent_board: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # percentage, 0-100
    data_privacy_policy: Mapped[bool | None] = mapped_column(nullable=True)
    total_revenue: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # ── Derived (recomputed on every write) ───────────────────────────────────
    carbon_intensity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    renewable_ratio: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    diversity_ratio: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    community_spend_ratio: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    __table_args__ = (
        # At most one live row per (user, year); soft-deleted rows keep their slot in history
        Index(
            "uq_esg_responses_user_year_active",
            "user_id",
            "financial_year",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("NOT is_deleted"),
        ),
    )
