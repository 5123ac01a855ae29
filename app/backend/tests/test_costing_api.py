from __future__ import annotations

import uuid
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from costing.db.dependencies import get_session_factory
from costing.models.entities import (
    BillableStatus,
    BillingEntry,
    Project,
    Resource,
    ResourceSubprojectAssignment,
    Subproject,
    SubprojectProductivityTier,
)


def _seed_location(db: Session) -> tuple[Project, Subproject, Resource]:
    project = Project(name="Acme Records")
    db.add(project)
    db.flush()

    subproject = Subproject(project_id=project.id, name="Dallas", flatrate=Decimal("20.00"))
    resource = Resource(name="Alice", role="associate")
    db.add_all([subproject, resource])
    db.flush()

    db.add_all(
        [
            ResourceSubprojectAssignment(resource_id=resource.id, subproject_id=subproject.id),
            SubprojectProductivityTier(subproject_id=subproject.id, level="medium", base_rate=Decimal("10.00")),
            SubprojectProductivityTier(subproject_id=subproject.id, level="best", base_rate=Decimal("15.00")),
        ]
    )
    db.commit()
    return project, subproject, resource


def _get_rows(client: TestClient, month: int = 3, year: int = 2026) -> list[dict[str, object]]:
    response = client.get("/api/v1/costing", params={"month": month, "year": year})
    assert response.status_code == 200
    body = response.json()
    assert body["month"] == month
    assert body["year"] == year
    return body["items"]


def test_costing_rows_reconcile_assignments_and_billing(client: TestClient, db_session: Session) -> None:
    project, subproject, resource = _seed_location(db_session)
    billing = BillingEntry(
        project_id=project.id,
        subproject_id=subproject.id,
        resource_id=resource.id,
        hours=Decimal("8.00"),
        productivity_level="best",
        billable_status=BillableStatus.BILLABLE,
        description="March charts",
        month=3,
        year=2026,
    )
    template = BillingEntry(
        project_id=project.id,
        subproject_id=subproject.id,
        resource_id=resource.id,
        hours=Decimal("160.00"),
        productivity_level="medium",
    )
    db_session.add_all([template, billing])
    db_session.commit()

    items = _get_rows(client)

    assert len(items) == 1
    row = items[0]
    assert row["unique_id"] == f"{project.id}-{subproject.id}-{resource.id}"
    assert row["project_name"] == "Acme Records"
    assert row["subproject_name"] == "Dallas"
    assert row["resource"]["name"] == "Alice"
    assert row["productivity"] == "Best"
    assert Decimal(row["rate"]) == Decimal("15")
    assert Decimal(row["costing_amount"]) == Decimal("120")
    assert Decimal(row["total_bill_amount"]) == Decimal("160")
    assert row["billing_id"] == str(billing.id)
    assert row["description"] == "March charts"
    assert row["is_billable"] is True
    assert row["is_editable"] is True


def test_costing_rows_surface_orphaned_history(client: TestClient, db_session: Session) -> None:
    _seed_location(db_session)
    departed_id = uuid.uuid4()
    orphan = BillingEntry(
        subproject_id=uuid.uuid4(),
        resource_id=departed_id,
        resource_name="Bob",
        subproject_name="Closed Site",
        hours=Decimal("5.00"),
        flatrate=Decimal("30.00"),
        billable_status=BillableStatus.NON_BILLABLE,
        month=3,
        year=2026,
    )
    other_period = BillingEntry(
        subproject_id=uuid.uuid4(),
        resource_id=departed_id,
        hours=Decimal("1.00"),
        month=2,
        year=2026,
    )
    db_session.add_all([orphan, other_period])
    db_session.commit()

    items = _get_rows(client)

    assert [row["is_editable"] for row in items] == [True, False]
    placeholder, history = items
    assert Decimal(placeholder["hours"]) == Decimal("0")
    assert Decimal(placeholder["rate"]) == Decimal("10")
    assert placeholder["billing_id"] is None
    assert history["unique_id"] == str(orphan.id)
    assert history["project_id"] is None
    assert history["project_name"] == "Unknown Project"
    assert history["subproject_name"] == "Closed Site"
    assert history["resource"]["name"] == "Bob"
    assert history["is_billable"] is False
    assert Decimal(history["total_bill_amount"]) == Decimal("150")


def test_costing_rows_are_cached_until_invalidated(client: TestClient, db_session: Session) -> None:
    project, subproject, resource = _seed_location(db_session)
    first = client.get("/api/v1/costing", params={"month": 3, "year": 2026})
    assert first.status_code == 200

    db_session.add(
        BillingEntry(
            project_id=project.id,
            subproject_id=subproject.id,
            resource_id=resource.id,
            hours=Decimal("6.00"),
            month=3,
            year=2026,
        )
    )
    db_session.commit()

    cached = client.get("/api/v1/costing", params={"month": 3, "year": 2026})
    assert cached.content == first.content

    invalidate = client.delete("/api/v1/costing/cache", params={"month": 3, "year": 2026})
    assert invalidate.status_code == 204

    items = _get_rows(client)
    assert Decimal(items[0]["hours"]) == Decimal("6")
    assert Decimal(items[0]["costing_amount"]) == Decimal("60")


def test_costing_rows_report_unavailable_store(client: TestClient, db_session: Session) -> None:
    _seed_location(db_session)
    BillingEntry.__table__.drop(bind=db_session.get_bind())

    response = client.get("/api/v1/costing", params={"month": 3, "year": 2026})

    assert response.status_code == 503
    assert response.json()["detail"] == "Costing data is temporarily unavailable."
    BillingEntry.__table__.create(bind=db_session.get_bind())


def test_empty_period_returns_no_rows(client: TestClient) -> None:
    assert _get_rows(client, month=1, year=2020) == []


def test_cache_invalidation_does_not_touch_the_database(
    client: TestClient, db_session: Session, session_factory: sessionmaker[Session]
) -> None:
    project, subproject, resource = _seed_location(db_session)
    assert Decimal(_get_rows(client)[0]["hours"]) == Decimal("0")
    db_session.add(
        BillingEntry(
            project_id=project.id,
            subproject_id=subproject.id,
            resource_id=resource.id,
            hours=Decimal("4.00"),
            month=3,
            year=2026,
        )
    )
    db_session.commit()

    def unavailable_session_factory() -> sessionmaker[Session]:
        raise RuntimeError("database opened while dropping a cache entry")

    client.app.dependency_overrides[get_session_factory] = unavailable_session_factory
    response = client.delete("/api/v1/costing/cache", params={"month": 3, "year": 2026})
    assert response.status_code == 204

    client.app.dependency_overrides[get_session_factory] = lambda: session_factory
    assert Decimal(_get_rows(client)[0]["hours"]) == Decimal("4")
