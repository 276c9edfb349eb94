"""
Tests for the FastAPI endpoints.
"""
import pytest
from fastapi.testclient import TestClient

from analytics_api.main import app
from analytics_core.data import DATA_PATH_ENV, _load_dashboard_data_cached


@pytest.fixture
def client():
    return TestClient(app)


def test_meta_options(client, contacts_csv):
    resp = client.get("/meta/options")
    assert resp.status_code == 200
    body = resp.json()
    assert body["date_bounds"] == {"min": "2024-08-05", "max": "2024-08-13"}
    assert body["options"]["languages"] == ["English", "Spanish"]


def test_weekly_default_filters(client, contacts_csv):
    resp = client.post("/weekly", json={})
    assert resp.status_code == 200
    body = resp.json()
    assert body["kpis"] == {"total_records": 4, "csat_responses": 3}
    assert [w["week_key"] for w in body["weeks"]] == ["2024-08-05", "2024-08-12"]
    first, second = body["weeks"]
    assert first["escalation_rate"] == pytest.approx(50.0)
    assert first["escalation_trend"] is None
    assert second["escalation_trend"] == pytest.approx(-100.0)
    assert second["csat_average"] is None
    assert body["filters"]["start_date"] == "2024-08-05"


def test_weekly_with_filters(client, contacts_csv):
    resp = client.post("/weekly", json={"language_exists": "exists", "languages": ["English"]})
    assert resp.status_code == 200
    assert resp.json()["kpis"]["total_records"] == 2


def test_summary(client, contacts_csv):
    resp = client.post("/summary", json={"csat_exists": "not_exists"})
    assert resp.status_code == 200
    assert resp.json() == {"total_records": 1, "csat_responses": 0}


def test_export_weekly_csv(client, contacts_csv):
    resp = client.post("/export/weekly", json={})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.splitlines()
    assert lines[0].startswith("Week,Total Records")
    assert lines[1] == "Aug 5 - Aug 11,2,1,50.00,,2,4.00,"


def test_export_records_csv(client, contacts_csv):
    resp = client.post("/export/records", json={"escalated": "Yes"})
    assert resp.status_code == 200
    assert len(resp.text.splitlines()) == 3


def test_export_unknown_kind(client, contacts_csv):
    resp = client.post("/export/charts", json={})
    assert resp.status_code == 404


def test_invalid_repeat_bound_rejected(client, contacts_csv):
    resp = client.post("/weekly", json={"repeat_contacts_min": -1})
    assert resp.status_code == 422


def test_missing_data_returns_503(client, tmp_path, monkeypatch):
    monkeypatch.setenv(DATA_PATH_ENV, str(tmp_path / "missing.csv"))
    _load_dashboard_data_cached.cache_clear()
    resp = client.post("/weekly", json={})
    assert resp.status_code == 503
    assert resp.json()["type"] == "DataLoadError"
