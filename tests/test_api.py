from datetime import datetime

import pytest
from conftest import FakeGenerativeClient
from fastapi.testclient import TestClient

from leadgen.main import create_app
from leadgen.quota import DailyGenerationQuota
from leadgen.service import LeadGenerationService

BODY = {"location": "Austin", "keywords": "logistics", "count": 2}


@pytest.fixture
def fake_client():
    return FakeGenerativeClient(["Acme Logistics", "Lonestar Freight"])


@pytest.fixture
def api(make_pipeline, store, fake_client):
    service = LeadGenerationService(
        pipeline=make_pipeline(fake_client),
        store=store,
        quota=DailyGenerationQuota(1, clock=lambda: datetime(2026, 3, 1, 12, 0)),
    )
    return TestClient(create_app(service))


def test_generate_returns_leads_and_progress(api):
    response = api.post("/leads/generate", json=BODY)

    assert response.status_code == 200
    data = response.json()
    assert sorted(lead["businessName"] for lead in data["leads"]) == ["Acme Logistics", "Lonestar Freight"]
    assert data["progress"][-1]["progress"] == 100
    assert "contactWhatsApp" in data["leads"][0]

    saved = api.get("/leads").json()
    assert len(saved) == 2
    assert api.get("/audit-logs").json()[0]["generatedLeadsCount"] == 2


def test_quota_exceeded_is_429(api):
    assert api.post("/leads/generate", json=BODY).status_code == 200

    response = api.post("/leads/generate", json=BODY)

    assert response.status_code == 429
    assert "daily generation limit" in response.json()["detail"]


def test_no_results_is_400_with_friendly_detail(api, fake_client):
    fake_client.discovery = ['{"companyNames": []}']

    response = api.post("/leads/generate", json=BODY)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("No businesses found")


def test_invalid_request_is_422(api):
    assert api.post("/leads/generate", json={"location": "", "count": 0}).status_code == 422


def test_export_import_and_clear(api):
    csv_text = "Business Name,Website,Emails\nAcme,https://acme.com,info@acme.com\n"

    imported = api.post("/leads/import", content=csv_text.encode("utf-8"), headers={"Content-Type": "text/csv"})
    assert imported.json() == {"imported": 1}

    exported = api.get("/leads/export")
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("text/csv")
    assert "attachment" in exported.headers["content-disposition"]
    assert "info@acme.com" in exported.text

    assert api.delete("/leads").json() == {"deleted": 1}
    assert api.get("/leads").json() == []


def test_empty_import_is_400(api):
    response = api.post("/leads/import", content=b"")

    assert response.status_code == 400
    assert response.json()["detail"] == "The provided data is empty."
