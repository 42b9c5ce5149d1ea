"""create esg_responses

Revision ID: c3d4e5f6a7b8
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "c3d4e5f6a7b8"
down_revision = None
branch_labels = None
depends_on = None

_RAW_AND_DERIVED = [
    "total_electricity",
    "renewable_electricity",
    "total_fuel",
    "carbon_emissions",
    "total_employees",
    "female_employees",
    "training_hours",
    "community_investment",
    "independent_board",
    "total_revenue",
    "carbon_intensity",
    "renewable_ratio",
    "diversity_ratio",
    "community_spend_ratio",
]


def upgrade() -> None:
    op.create_table(
        "esg_responses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("financial_year", sa.Integer(), nullable=False),
        *[
            sa.Column(name, sa.Float(), server_default="0", nullable=False)
            for name in _RAW_AND_DERIVED
        ],
        sa.Column("data_privacy_policy", sa.Boolean(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_esg_responses_user_id", "esg_responses", ["user_id"])
    op.create_index(
        "uq_esg_responses_user_year_active",
        "esg_responses",
        ["user_id", "financial_year"],
        unique=True,
        postgresql_where=sa.text("NOT is_deleted"),
    )


def downgrade() -> None:
    op.drop_index("uq_esg_responses_user_year_active", table_name="esg_responses")
    op.drop_index("ix_esg_responses_user_id", table_name="esg_responses")
    op.drop_table("esg_responses")
