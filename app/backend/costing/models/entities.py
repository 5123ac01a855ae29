"""ORM entities for the costing schema."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from costing.db.base import Base


class BillableStatus(str, enum.Enum):
    BILLABLE = "Billable"
    NON_BILLABLE = "Non-Billable"


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Subproject(Base):
    __tablename__ = "subprojects"
    __table_args__ = (
        CheckConstraint("flatrate IS NULL OR flatrate >= 0", name="ck_subprojects_flatrate_non_negative"),
        Index("ix_subprojects_project_id", "project_id"),
        UniqueConstraint("project_id", "name", name="uq_subprojects_project_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # No FK: a subproject may outlive its project, which the reconciliation treats as unresolved.
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    flatrate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Resource(Base):
    __tablename__ = "resources"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class ResourceSubprojectAssignment(Base):
    """Current assignment roster; rows are replaced, never versioned."""

    __tablename__ = "resource_subproject_assignments"
    __table_args__ = (
        Index("ix_resource_assignments_resource_id", "resource_id"),
        Index("ix_resource_assignments_subproject_id", "subproject_id"),
        UniqueConstraint("resource_id", "subproject_id", name="uq_resource_assignments"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    resource_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("resources.id", ondelete="CASCADE"), nullable=False
    )
    subproject_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)


class SubprojectProductivityTier(Base):
    __tablename__ = "subproject_productivity_tiers"
    __table_args__ = (
        CheckConstraint("base_rate IS NULL OR base_rate >= 0", name="ck_productivity_tiers_base_rate_non_negative"),
        Index("ix_productivity_tiers_subproject_id", "subproject_id"),
        UniqueConstraint("subproject_id", "level", name="uq_productivity_tiers_subproject_level"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subproject_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    level: Mapped[str] = mapped_column(String(32), nullable=False)
    base_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)


class BillingEntry(Base):
    __tablename__ = "billing_entries"
    __table_args__ = (
        CheckConstraint("hours >= 0", name="ck_billing_entries_hours_non_negative"),
        CheckConstraint("month IS NULL OR (month >= 1 AND month <= 12)", name="ck_billing_entries_month_range"),
        Index("ix_billing_entries_period", "year", "month"),
        Index("ix_billing_entries_subproject_resource", "subproject_id", "resource_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # References are kept without FKs so billing history survives deletions.
    project_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    subproject_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    resource_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    project_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subproject_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resource_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resource_role: Mapped[str | None] = mapped_column(String(64), nullable=True)

    productivity_level: Mapped[str | None] = mapped_column(String(32), nullable=True, default="Medium")
    hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    flatrate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    billable_status: Mapped[BillableStatus] = mapped_column(
        SQLEnum(
            BillableStatus,
            name="billable_status",
            native_enum=False,
            length=16,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=BillableStatus.BILLABLE,
    )
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    month: Mapped[int | None] = mapped_column(nullable=True)
    year: Mapped[int | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
