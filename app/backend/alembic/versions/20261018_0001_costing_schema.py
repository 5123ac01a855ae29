"""costing schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "subprojects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("flatrate", sa.Numeric(12, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("flatrate IS NULL OR flatrate >= 0", name="ck_subprojects_flatrate_non_negative"),
        sa.UniqueConstraint("project_id", "name", name="uq_subprojects_project_name"),
    )
    op.create_index("ix_subprojects_project_id", "subprojects", ["project_id"])

    op.create_table(
        "resources",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=64), nullable=True),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "resource_subproject_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "resource_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subproject_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.UniqueConstraint("resource_id", "subproject_id", name="uq_resource_assignments"),
    )
    op.create_index("ix_resource_assignments_resource_id", "resource_subproject_assignments", ["resource_id"])
    op.create_index("ix_resource_assignments_subproject_id", "resource_subproject_assignments", ["subproject_id"])

    op.create_table(
        "subproject_productivity_tiers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("subproject_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("level", sa.String(length=32), nullable=False),
        sa.Column("base_rate", sa.Numeric(12, 2), nullable=True),
        sa.CheckConstraint(
            "base_rate IS NULL OR base_rate >= 0",
            name="ck_productivity_tiers_base_rate_non_negative",
        ),
        sa.UniqueConstraint("subproject_id", "level", name="uq_productivity_tiers_subproject_level"),
    )
    op.create_index("ix_productivity_tiers_subproject_id", "subproject_productivity_tiers", ["subproject_id"])

    op.create_table(
        "billing_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("subproject_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("resource_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("project_name", sa.String(length=255), nullable=True),
        sa.Column("subproject_name", sa.String(length=255), nullable=True),
        sa.Column("resource_name", sa.String(length=255), nullable=True),
        sa.Column("resource_role", sa.String(length=64), nullable=True),
        sa.Column("productivity_level", sa.String(length=32), nullable=True),
        sa.Column("hours", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("flatrate", sa.Numeric(12, 2), nullable=True),
        sa.Column("billable_status", sa.String(length=16), nullable=False, server_default="Billable"),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("month", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("hours >= 0", name="ck_billing_entries_hours_non_negative"),
        sa.CheckConstraint(
            "month IS NULL OR (month >= 1 AND month <= 12)",
            name="ck_billing_entries_month_range",
        ),
    )
    op.create_index("ix_billing_entries_period", "billing_entries", ["year", "month"])
    op.create_index(
        "ix_billing_entries_subproject_resource",
        "billing_entries",
        ["subproject_id", "resource_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_billing_entries_subproject_resource", table_name="billing_entries")
    op.drop_index("ix_billing_entries_period", table_name="billing_entries")
    op.drop_table("billing_entries")

    op.drop_index("ix_productivity_tiers_subproject_id", table_name="subproject_productivity_tiers")
    op.drop_table("subproject_productivity_tiers")

    op.drop_index("ix_resource_assignments_subproject_id", table_name="resource_subproject_assignments")
    op.drop_index("ix_resource_assignments_resource_id", table_name="resource_subproject_assignments")
    op.drop_table("resource_subproject_assignments")

    op.drop_table("resources")

    op.drop_index("ix_subprojects_project_id", table_name="subprojects")
    op.drop_table("subprojects")

    op.drop_table("projects")
