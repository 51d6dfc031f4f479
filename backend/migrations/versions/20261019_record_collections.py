"""record collections

Revision ID: 20261019_records
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the keyed record store:
- record_collections: one row per named collection (orders, invoices, pods,
  products, stores, users, planograms) holding the full JSON list of records
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_records"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "record_collections",
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("records", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )


def downgrade():
    op.drop_table("record_collections")
