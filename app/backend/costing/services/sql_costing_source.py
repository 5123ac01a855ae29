"""SQLAlchemy-backed costing data source."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TypeVar
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from costing.models.entities import BillingEntry
from costing.repositories.costing_repository import CostingRepository
from costing.services.costing_records import (
    BillingEntryRecord,
    CostingPeriod,
    ProductivityTierRecord,
    ProjectRecord,
    ResourceRecord,
    SubprojectRecord,
)

T = TypeVar("T")


def _billing_record(row: BillingEntry) -> BillingEntryRecord:
    return BillingEntryRecord(
        id=row.id,
        resource_id=row.resource_id,
        subproject_id=row.subproject_id,
        project_id=row.project_id,
        hours=row.hours,
        productivity_level=row.productivity_level,
        billable_status=row.billable_status.value if row.billable_status is not None else None,
        description=row.description,
        month=row.month,
        year=row.year,
        project_name=row.project_name,
        subproject_name=row.subproject_name,
        resource_name=row.resource_name,
        resource_role=row.resource_role,
        flatrate=row.flatrate,
    )


class SqlCostingDataSource:
    """Runs every read on its own session in a worker thread so reads can overlap."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    async def _run(self, query: Callable[[CostingRepository], T]) -> T:
        def work() -> T:
            with self.session_factory() as session:
                return query(CostingRepository(session))

        return await asyncio.to_thread(work)

    async def list_projects(self) -> list[ProjectRecord]:
        return await self._run(
            lambda repo: [ProjectRecord(id=row.id, name=row.name) for row in repo.list_projects()]
        )

    async def list_subprojects(self) -> list[SubprojectRecord]:
        return await self._run(
            lambda repo: [
                SubprojectRecord(
                    id=row.id,
                    project_id=row.project_id,
                    name=row.name,
                    flatrate=row.flatrate,
                    status=row.status,
                )
                for row in repo.list_subprojects()
            ]
        )

    async def list_resources(self) -> list[ResourceRecord]:
        def load(repo: CostingRepository) -> list[ResourceRecord]:
            roster: dict[UUID, list[UUID]] = {}
            for assignment in repo.list_assignments():
                roster.setdefault(assignment.resource_id, []).append(assignment.subproject_id)
            return [
                ResourceRecord(
                    id=row.id,
                    name=row.name,
                    avatar_url=row.avatar_url,
                    role=row.role,
                    assigned_subproject_ids=tuple(roster.get(row.id, ())),
                )
                for row in repo.list_resources()
            ]

        return await self._run(load)

    async def list_billing_entries(self, period: CostingPeriod) -> list[BillingEntryRecord]:
        return await self._run(
            lambda repo: [
                _billing_record(row)
                for row in repo.list_billing_entries_for_period(month=period.month, year=period.year)
            ]
        )

    async def list_productivity_tiers(self, subproject_ids: set[UUID]) -> list[ProductivityTierRecord]:
        return await self._run(
            lambda repo: [
                ProductivityTierRecord(subproject_id=row.subproject_id, level=row.level, base_rate=row.base_rate)
                for row in repo.list_productivity_tiers(subproject_ids)
            ]
        )
