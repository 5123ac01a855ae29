"""Typed snapshot records consumed and produced by the costing reconciliation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import NamedTuple
from uuid import UUID


@dataclass(frozen=True, slots=True)
class CostingPeriod:
    month: int
    year: int


class CostingKey(NamedTuple):
    """Identity of one (subproject, resource) pair in the output."""

    subproject_id: UUID | None
    resource_id: UUID


@dataclass(frozen=True, slots=True)
class ProjectRecord:
    id: UUID
    name: str


@dataclass(frozen=True, slots=True)
class SubprojectRecord:
    id: UUID
    project_id: UUID
    name: str
    flatrate: Decimal | None = None
    status: str = "active"


@dataclass(frozen=True, slots=True)
class ResourceRecord:
    id: UUID
    name: str
    avatar_url: str | None = None
    role: str | None = None
    assigned_subproject_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True, slots=True)
class ProductivityTierRecord:
    subproject_id: UUID
    level: str
    base_rate: Decimal | None


@dataclass(frozen=True, slots=True)
class BillingEntryRecord:
    """A billing row; ``month`` unset marks a standing template."""

    id: UUID
    resource_id: UUID
    subproject_id: UUID | None
    project_id: UUID | None = None
    hours: Decimal | None = None
    productivity_level: str | None = None
    billable_status: str | None = None
    description: str | None = None
    month: int | None = None
    year: int | None = None
    project_name: str | None = None
    subproject_name: str | None = None
    resource_name: str | None = None
    resource_role: str | None = None
    flatrate: Decimal | None = None

    @property
    def key(self) -> CostingKey:
        return CostingKey(self.subproject_id, self.resource_id)

    @property
    def is_template(self) -> bool:
        return self.month is None

    def matches_period(self, period: CostingPeriod) -> bool:
        return self.month is not None and self.month == period.month and self.year == period.year


@dataclass(frozen=True, slots=True)
class ResourceDisplay:
    id: UUID
    name: str
    avatar_url: str
    role: str


@dataclass(frozen=True, slots=True)
class CostingRow:
    unique_id: str
    project_id: UUID | None
    project_name: str
    subproject_id: UUID | None
    subproject_name: str
    resource: ResourceDisplay
    hours: Decimal
    productivity: str
    rate: Decimal
    flatrate: Decimal
    costing_amount: Decimal
    total_bill_amount: Decimal
    is_billable: bool
    description: str
    billing_id: UUID | None
    is_editable: bool

    @property
    def key(self) -> CostingKey:
        return CostingKey(self.subproject_id, self.resource.id)
