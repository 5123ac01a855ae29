from fastapi.testclient import TestClient

from costing.core.cache import CostingCache, get_costing_cache


def test_health_reports_cache_backend(client: TestClient) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "cache": "enabled"}


def test_health_without_cache_backend(client: TestClient) -> None:
    client.app.dependency_overrides[get_costing_cache] = lambda: CostingCache(None)

    response = client.get("/api/v1/health")

    assert response.json() == {"status": "ok", "cache": "disabled"}


def test_root_reports_service_name(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"service": "Costing Backend", "status": "running"}
