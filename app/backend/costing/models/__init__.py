"""ORM model package."""

from costing.models.entities import (
    BillableStatus,
    BillingEntry,
    Project,
    Resource,
    ResourceSubprojectAssignment,
    Subproject,
    SubprojectProductivityTier,
)

__all__ = [
    "BillableStatus",
    "BillingEntry",
    "Project",
    "Resource",
    "ResourceSubprojectAssignment",
    "Subproject",
    "SubprojectProductivityTier",
]
