from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from talenthub.api import create_app
from talenthub.models.analytics_models import ReportResult


@pytest.fixture
def client(test_db_path):
    with TestClient(create_app(db_path=test_db_path)) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "connected"}


def test_plans(client):
    plans = client.get("/plans").json()
    assert [plan["id"] for plan in plans] == [
        "free-trial",
        "starter-monthly",
        "professional-monthly",
        "enterprise-monthly",
    ]
    assert plans[1]["price"] == "$49"
    assert plans[0]["limits"]["max_results"] == 50


def test_import_then_search(client):
    response = client.post(
        "/candidates/import/tenant",
        json=[
            {"name": "Ada Lovelace", "email": "ada@example.com", "skills": ["Python"]},
            {"name": "Broken", "email": "broken@example.com", "status": "sleeping"},
        ],
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] == 1
    assert len(body["errors"]) == 1

    response = client.post("/search", json={"user_id": "tenant", "filters": {"query": "ada"}})
    assert response.status_code == 200
    result = response.json()
    assert result["total_results"] == 1
    assert result["candidates"][0]["name"] == "Ada Lovelace"
    assert result["error"] is None


def test_invalid_filters_rejected(client):
    response = client.post("/search", json={"user_id": "tenant", "filters": {"sort_by": "height"}})
    assert response.status_code == 422


@pytest.mark.parametrize("field", ["experience_bucket", "salary_bucket"])
def test_unknown_bucket_key_is_a_client_error(client, field):
    response = client.post("/search", json={"user_id": "tenant", "filters": {field: "11+"}})
    assert response.status_code == 422


def test_saving_search_on_free_plan_is_forbidden(client):
    response = client.post("/searches/saved", json={"user_id": "tenant", "filters": {"query": "python"}})
    assert response.status_code == 403


def test_report(client):
    response = client.get("/reports/tenant", params={"range": "90"})
    assert response.status_code == 200
    report = response.json()["report"]
    assert report["tier_id"] == "free-trial"
    assert report["advanced"] is None


def test_report_failure_maps_to_500(client):
    client.app.state.report_service.build = AsyncMock(
        return_value=ReportResult(error="Failed to fetch analytics data: boom")
    )
    response = client.get("/reports/tenant")
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch analytics data: boom"
