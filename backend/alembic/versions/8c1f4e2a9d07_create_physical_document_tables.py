"""create physical event and aggregate document tables

Revision ID: 8c1f4e2a9d07
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from typing import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "8c1f4e2a9d07"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

DOCUMENT_TABLES = (
    "physical_events",
    "physical_days",
    "physical_decks_agg",
    "physical_tournaments_agg",
    "tournaments",
)


def upgrade() -> None:
    for table_name in DOCUMENT_TABLES:
        op.create_table(
            table_name,
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
        op.create_index(op.f(f"ix_{table_name}_key"), table_name, ["key"], unique=False)

    # Equality lookups used when recomputing aggregates.
    for field in ("date", "playerDeckKey", "tournamentId"):
        op.execute(
            f"""
            CREATE INDEX IF NOT EXISTS ix_physical_events_{field.lower()}
            ON physical_events ((doc -> '{field}'))
            """
        )


def downgrade() -> None:
    for field in ("date", "playerDeckKey", "tournamentId"):
        op.execute(f"DROP INDEX IF EXISTS ix_physical_events_{field.lower()}")
    for table_name in reversed(DOCUMENT_TABLES):
        op.drop_index(op.f(f"ix_{table_name}_key"), table_name=table_name)
        op.drop_table(table_name)
