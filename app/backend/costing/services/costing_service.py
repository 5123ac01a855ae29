"""Costing reconciliation: assignments, billing, productivity tiers and metadata into costing rows."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from costing.services.costing_records import (
    BillingEntryRecord,
    CostingKey,
    CostingPeriod,
    CostingRow,
    ProductivityTierRecord,
    ProjectRecord,
    ResourceDisplay,
    ResourceRecord,
    SubprojectRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_PRODUCTIVITY = "Medium"
BILLABLE = "Billable"
UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_SUBPROJECT = "Unknown Subproject"
DELETED_RESOURCE_AVATAR_URL = "https://placehold.co/40x40/f3f4f6/374151?text=DLT"
DELETED_RESOURCE_ROLE = "N/A"

ZERO = Decimal("0")

_ROWS_ADAPTER = TypeAdapter(list[CostingRow])


class CostingDataSource(Protocol):
    """Read capability over the four record sets."""

    async def list_projects(self) -> list[ProjectRecord]: ...

    async def list_subprojects(self) -> list[SubprojectRecord]: ...

    async def list_resources(self) -> list[ResourceRecord]: ...

    async def list_billing_entries(self, period: CostingPeriod) -> list[BillingEntryRecord]: ...

    async def list_productivity_tiers(self, subproject_ids: set[UUID]) -> list[ProductivityTierRecord]: ...


class CostingCacheBackend(Protocol):
    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


def normalize_productivity_level(level: str | None) -> str:
    if not level:
        return DEFAULT_PRODUCTIVITY
    if level.lower() == "best":
        return "Best"
    return level[:1].upper() + level[1:].lower()


def resolve_tier_rate(tiers: Sequence[ProductivityTierRecord], level: str | None) -> Decimal:
    """Rate of the tier matching ``level``, else the Medium tier, else zero."""

    wanted = (level or "").lower()
    fallback: ProductivityTierRecord | None = None
    for tier in tiers:
        tier_level = tier.level.lower()
        if tier_level == wanted:
            return tier.base_rate if tier.base_rate is not None else ZERO
        if fallback is None and tier_level == DEFAULT_PRODUCTIVITY.lower():
            fallback = tier
    if fallback is None or fallback.base_rate is None:
        return ZERO
    return fallback.base_rate


def period_cache_key(period: CostingPeriod, prefix: str = "costing") -> str:
    return f"{prefix}:{period.year}:{period.month}"


def _compose_row(
    *,
    unique_id: str,
    project_id: UUID | None,
    project_name: str,
    subproject_id: UUID | None,
    subproject_name: str,
    resource: ResourceDisplay,
    hours: Decimal,
    productivity: str,
    rate: Decimal,
    flatrate: Decimal,
    is_billable: bool,
    description: str,
    billing_id: UUID | None,
    is_editable: bool,
) -> CostingRow:
    return CostingRow(
        unique_id=unique_id,
        project_id=project_id,
        project_name=project_name,
        subproject_id=subproject_id,
        subproject_name=subproject_name,
        resource=resource,
        hours=hours,
        productivity=productivity,
        rate=rate,
        flatrate=flatrate,
        costing_amount=hours * rate,
        total_bill_amount=hours * flatrate,
        is_billable=is_billable,
        description=description,
        billing_id=billing_id,
        is_editable=is_editable,
    )


def _live_resource(resource: ResourceRecord) -> ResourceDisplay:
    return ResourceDisplay(
        id=resource.id,
        name=resource.name,
        avatar_url=resource.avatar_url or "",
        role=resource.role or "",
    )


def _snapshot_resource(entry: BillingEntryRecord) -> ResourceDisplay:
    return ResourceDisplay(
        id=entry.resource_id,
        name=entry.resource_name or f"Deleted Resource ({entry.resource_id})",
        avatar_url=DELETED_RESOURCE_AVATAR_URL,
        role=DELETED_RESOURCE_ROLE,
    )


def _or_zero(value: Decimal | None) -> Decimal:
    return value if value is not None else ZERO


class BillingIndex:
    """Billing entries by (subproject, resource) key.

    Entries that are not an exact period match are stored only into free keys;
    exact period matches are then stored unconditionally, so a monthly entry
    always replaces a template for the same key.
    """

    def __init__(self, entries: dict[CostingKey, BillingEntryRecord]) -> None:
        self._entries = entries

    @classmethod
    def build(cls, entries: Iterable[BillingEntryRecord], period: CostingPeriod) -> BillingIndex:
        entries = list(entries)
        indexed: dict[CostingKey, BillingEntryRecord] = {}
        for entry in entries:
            if not entry.matches_period(period):
                indexed.setdefault(entry.key, entry)
        for entry in entries:
            if entry.matches_period(period):
                indexed[entry.key] = entry
        return cls(indexed)

    def get(self, key: CostingKey) -> BillingEntryRecord | None:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)


class CostingService:
    """Computes and caches costing rows per period."""

    def __init__(
        self,
        source: CostingDataSource,
        cache: CostingCacheBackend,
        *,
        ttl_seconds: int = 300,
        key_prefix: str = "costing",
    ) -> None:
        self.source = source
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    # ---------- Serialization ----------
    @staticmethod
    def serialize_row(row: CostingRow) -> dict[str, object]:
        return {
            "unique_id": row.unique_id,
            "project_id": str(row.project_id) if row.project_id is not None else None,
            "project_name": row.project_name,
            "subproject_id": str(row.subproject_id) if row.subproject_id is not None else None,
            "subproject_name": row.subproject_name,
            "resource": {
                "id": str(row.resource.id),
                "name": row.resource.name,
                "avatar_url": row.resource.avatar_url,
                "role": row.resource.role,
            },
            "hours": str(row.hours),
            "productivity": row.productivity,
            "rate": str(row.rate),
            "flatrate": str(row.flatrate),
            "costing_amount": str(row.costing_amount),
            "total_bill_amount": str(row.total_bill_amount),
            "is_billable": row.is_billable,
            "description": row.description,
            "billing_id": str(row.billing_id) if row.billing_id is not None else None,
            "is_editable": row.is_editable,
        }

    # ---------- Cache-through entry points ----------
    async def compute_costing_rows(self, period: CostingPeriod) -> list[CostingRow]:
        key = period_cache_key(period, self.key_prefix)
        cached = await self._read_cached(key)
        if cached is not None:
            logger.debug("Costing cache hit for %s", key)
            return cached

        logger.debug("Costing cache miss for %s", key)
        rows = await self.reconcile(period)
        await self.cache.set(key, _ROWS_ADAPTER.dump_json(rows), self.ttl_seconds)
        return rows

    async def invalidate_period(self, period: CostingPeriod) -> None:
        """Drop the cached rows of a period after its billing entries changed."""

        await self.cache.delete(period_cache_key(period, self.key_prefix))

    async def _read_cached(self, key: str) -> list[CostingRow] | None:
        payload = await self.cache.get(key)
        if payload is None:
            return None
        try:
            return _ROWS_ADAPTER.validate_json(payload)
        except ValidationError:
            logger.warning("Discarding unreadable costing cache entry %s", key)
            return None

    # ---------- Reconciliation ----------
    async def reconcile(self, period: CostingPeriod) -> list[CostingRow]:
        """Build the rows for a period from a fresh snapshot, bypassing the cache."""

        projects, subprojects, resources, billing_entries = await self._load_snapshot(period)

        project_by_id: dict[UUID, ProjectRecord] = {project.id: project for project in projects}
        subproject_by_id: dict[UUID, SubprojectRecord] = {row.id: row for row in subprojects}
        resource_by_id: dict[UUID, ResourceRecord] = {resource.id: resource for resource in resources}
        billing_index = BillingIndex.build(billing_entries, period)

        tiers = await self.source.list_productivity_tiers(set(subproject_by_id))
        tiers_by_subproject: dict[UUID, list[ProductivityTierRecord]] = {}
        for tier in tiers:
            tiers_by_subproject.setdefault(tier.subproject_id, []).append(tier)

        rows: dict[CostingKey, CostingRow] = {}

        for resource in resources:
            for subproject_id in resource.assigned_subproject_ids:
                subproject = subproject_by_id.get(subproject_id)
                if subproject is None:
                    continue
                project = project_by_id.get(subproject.project_id)
                if project is None:
                    continue

                key = CostingKey(subproject.id, resource.id)
                rows[key] = self._assigned_row(
                    project=project,
                    subproject=subproject,
                    resource=resource,
                    billing=billing_index.get(key),
                    tiers=tiers_by_subproject.get(subproject.id, ()),
                )

        assigned_count = len(rows)
        orphan_count = 0
        for entry in billing_entries:
            if entry.is_template or entry.key in rows:
                continue

            subproject = subproject_by_id.get(entry.subproject_id)
            project = project_by_id.get(subproject.project_id) if subproject is not None else None
            rate = resolve_tier_rate(tiers_by_subproject.get(entry.subproject_id, ()), entry.productivity_level)
            if subproject is None or project is None:
                rows[entry.key] = self._orphan_row(entry, rate)
                orphan_count += 1
            else:
                rows[entry.key] = self._historical_row(
                    entry,
                    project=project,
                    subproject=subproject,
                    resource=resource_by_id.get(entry.resource_id),
                    rate=rate,
                )

        logger.info(
            "Reconciled %d costing rows for %s-%s (%d assigned, %d orphaned)",
            len(rows),
            period.year,
            period.month,
            assigned_count,
            orphan_count,
        )
        return list(rows.values())

    async def _load_snapshot(
        self, period: CostingPeriod
    ) -> tuple[list[ProjectRecord], list[SubprojectRecord], list[ResourceRecord], list[BillingEntryRecord]]:
        # The first failing read cancels the others and is re-raised on its own.
        try:
            async with asyncio.TaskGroup() as group:
                projects = group.create_task(self.source.list_projects())
                subprojects = group.create_task(self.source.list_subprojects())
                resources = group.create_task(self.source.list_resources())
                billing_entries = group.create_task(self.source.list_billing_entries(period))
        except ExceptionGroup as exc:
            raise exc.exceptions[0] from None
        return projects.result(), subprojects.result(), resources.result(), billing_entries.result()

    @staticmethod
    def _assigned_row(
        *,
        project: ProjectRecord,
        subproject: SubprojectRecord,
        resource: ResourceRecord,
        billing: BillingEntryRecord | None,
        tiers: Sequence[ProductivityTierRecord],
    ) -> CostingRow:
        common = {
            "unique_id": f"{project.id}-{subproject.id}-{resource.id}",
            "project_id": project.id,
            "project_name": project.name,
            "subproject_id": subproject.id,
            "subproject_name": subproject.name,
            "resource": _live_resource(resource),
            "flatrate": _or_zero(subproject.flatrate),
            "is_editable": True,
        }
        if billing is None:
            return _compose_row(
                **common,
                hours=ZERO,
                productivity=DEFAULT_PRODUCTIVITY,
                rate=resolve_tier_rate(tiers, DEFAULT_PRODUCTIVITY),
                is_billable=True,
                description="",
                billing_id=None,
            )

        return _compose_row(
            **common,
            hours=_or_zero(billing.hours),
            productivity=normalize_productivity_level(billing.productivity_level),
            rate=resolve_tier_rate(tiers, billing.productivity_level),
            is_billable=billing.billable_status == BILLABLE,
            description=billing.description or "",
            billing_id=billing.id,
        )

    @staticmethod
    def _orphan_row(entry: BillingEntryRecord, rate: Decimal) -> CostingRow:
        return _compose_row(
            unique_id=str(entry.id),
            project_id=None,
            project_name=entry.project_name or UNKNOWN_PROJECT,
            subproject_id=entry.subproject_id,
            subproject_name=entry.subproject_name or UNKNOWN_SUBPROJECT,
            resource=_snapshot_resource(entry),
            hours=_or_zero(entry.hours),
            productivity=normalize_productivity_level(entry.productivity_level),
            rate=rate,
            flatrate=_or_zero(entry.flatrate),
            is_billable=entry.billable_status == BILLABLE,
            description=entry.description or "",
            billing_id=entry.id,
            is_editable=False,
        )

    @staticmethod
    def _historical_row(
        entry: BillingEntryRecord,
        *,
        project: ProjectRecord,
        subproject: SubprojectRecord,
        resource: ResourceRecord | None,
        rate: Decimal,
    ) -> CostingRow:
        # The assignment is no longer active, so the row is read-only even when everything resolves.
        return _compose_row(
            unique_id=f"{project.id}-{subproject.id}-{entry.resource_id}",
            project_id=project.id,
            project_name=project.name,
            subproject_id=subproject.id,
            subproject_name=subproject.name,
            resource=_live_resource(resource) if resource is not None else _snapshot_resource(entry),
            hours=_or_zero(entry.hours),
            productivity=normalize_productivity_level(entry.productivity_level),
            rate=rate,
            flatrate=_or_zero(subproject.flatrate),
            is_billable=entry.billable_status == BILLABLE,
            description=entry.description or "",
            billing_id=entry.id,
            is_editable=False,
        )
