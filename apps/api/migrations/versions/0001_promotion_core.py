"""v1: promotion core tables

- Reference data: companies, wrestlers, venues
- Aggregates stored as documents: championships, shows
  (doc_json + denormalized query columns + version for compare-and-swap)
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_promotion_core"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
    ]


def upgrade() -> None:
    # --- reference data ---
    op.create_table(
        "companies",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("popularity", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("money", sa.Float(), nullable=False, server_default="1000000"),
        *_timestamps(),
    )
    op.create_index("ix_companies_name", "companies", ["name"])

    op.create_table(
        "wrestlers",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("gender", sa.Text(), nullable=False),
        sa.Column("style", sa.Text(), nullable=False),
        sa.Column("strength", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("agility", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("charisma", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("technical", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("popularity", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("salary", sa.Float(), nullable=False, server_default="50000"),
        sa.Column("company_id", sa.Text(), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_injured", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_wrestlers_name", "wrestlers", ["name"])
    op.create_index("ix_wrestlers_company_id", "wrestlers", ["company_id"])

    op.create_table(
        "venues",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=False, server_default=""),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("rental_cost", sa.Float(), nullable=False),
        sa.Column("prestige", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # --- aggregates ---
    op.create_table(
        "championships",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("company_id", sa.Text(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("weight", sa.Text(), nullable=False, server_default="Heavyweight"),
        sa.Column("prestige", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("current_holder_id", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("doc_json", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_championships_company_id", "championships", ["company_id"])
    op.create_index("ix_championships_current_holder_id", "championships", ["current_holder_id"])

    op.create_table(
        "shows",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("company_id", sa.Text(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("venue_id", sa.Text(), sa.ForeignKey("venues.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default="Draft"),
        sa.Column("show_type", sa.Text(), nullable=False, server_default="Weekly TV"),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("doc_json", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_shows_company_id", "shows", ["company_id"])
    op.create_index("ix_shows_status", "shows", ["status"])
    op.create_index("ix_shows_date", "shows", ["date"])


def downgrade() -> None:
    op.drop_table("shows")
    op.drop_table("championships")
    op.drop_table("venues")
    op.drop_table("wrestlers")
    op.drop_table("companies")
