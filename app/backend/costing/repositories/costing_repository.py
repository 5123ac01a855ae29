"""Repository helpers for the costing reconciliation reads."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from costing.models.entities import (
    BillingEntry,
    Project,
    Resource,
    ResourceSubprojectAssignment,
    Subproject,
    SubprojectProductivityTier,
)


class CostingRepository:
    """Read-only queries backing a costing snapshot."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Projects and subprojects ----------
    def list_projects(self) -> list[Project]:
        return self.db.scalars(select(Project).order_by(Project.name.asc(), Project.id.asc())).all()

    def list_subprojects(self) -> list[Subproject]:
        return self.db.scalars(
            select(Subproject).order_by(Subproject.project_id.asc(), Subproject.name.asc())
        ).all()

    # ---------- Resources ----------
    def list_resources(self) -> list[Resource]:
        return self.db.scalars(select(Resource).order_by(Resource.name.asc(), Resource.id.asc())).all()

    def list_assignments(self) -> list[ResourceSubprojectAssignment]:
        return self.db.scalars(
            select(ResourceSubprojectAssignment).order_by(
                ResourceSubprojectAssignment.resource_id.asc(),
                ResourceSubprojectAssignment.subproject_id.asc(),
            )
        ).all()

    # ---------- Billing ----------
    def list_billing_entries_for_period(self, *, month: int, year: int) -> list[BillingEntry]:
        """Monthly entries of the period plus every template (month unset)."""

        return self.db.scalars(
            select(BillingEntry)
            .where(
                or_(
                    and_(BillingEntry.month == month, BillingEntry.year == year),
                    BillingEntry.month.is_(None),
                )
            )
            .order_by(BillingEntry.created_at.asc(), BillingEntry.id.asc())
        ).all()

    # ---------- Productivity ----------
    def list_productivity_tiers(self, subproject_ids: set[UUID]) -> list[SubprojectProductivityTier]:
        if not subproject_ids:
            return []

        return self.db.scalars(
            select(SubprojectProductivityTier)
            .where(SubprojectProductivityTier.subproject_id.in_(subproject_ids))
            .order_by(SubprojectProductivityTier.subproject_id.asc(), SubprojectProductivityTier.level.asc())
        ).all()
