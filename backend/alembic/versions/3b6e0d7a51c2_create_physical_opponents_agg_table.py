"""create physical opponents aggregate table

Revision ID: 3b6e0d7a51c2
Revises: 8c1f4e2a9d07
Create Date: 2026-10-19 12:00:00.000000
"""

from typing import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3b6e0d7a51c2"
down_revision: str | None = "8c1f4e2a9d07"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "physical_opponents_agg",
        sa.Column("key", sa.String(), nullable=False),
        sa.Column(
            "doc",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("created", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )
    op.create_index(
        op.f("ix_physical_opponents_agg_key"), "physical_opponents_agg", ["key"], unique=False
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS ix_physical_events_opponent
        ON physical_events ((doc -> 'opponent'))
        """
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_physical_events_opponent")
    op.drop_index(op.f("ix_physical_opponents_agg_key"), table_name="physical_opponents_agg")
    op.drop_table("physical_opponents_agg")
