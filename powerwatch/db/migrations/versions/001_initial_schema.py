"""
Initial schema: create the append-only energy_metrics table.

Revision ID: 001
Revises: None
Create Date: 2026-10-19

CHANGELOG:
- 2026-10-19: Initial creation
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create energy_metrics and its timestamp index."""
    op.create_table(
        "energy_metrics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("power_value", sa.Double(), nullable=False),
        sa.Column("current_value", sa.Double(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    # Range queries filter and sort on timestamp.
    op.create_index(
        "ix_energy_metrics_timestamp", "energy_metrics", ["timestamp"], unique=False
    )


def downgrade() -> None:
    """Drop energy_metrics."""
    op.drop_index("ix_energy_metrics_timestamp", table_name="energy_metrics")
    op.drop_table("energy_metrics")
