import random

import pytest
from fastapi.testclient import TestClient

from climate_ops.sources import KMAWeatherSource, StaticFeatureSource
from climate_ops.system import ClimateOpsSystem
from climate_ops.web_app import app, get_system
from climate_ops.zones import FLOOD_100YR_1H, IMPERVIOUS


@pytest.fixture()
def client():
    source = StaticFeatureSource(
        {
            FLOOD_100YR_1H: [
                {
                    "id": "cfm.1",
                    "geometry": {"type": "Point", "coordinates": [127.0286, 37.2636]},
                    "properties": {"GRID_CODE": 4, "SGG_NM": "Suwon"},
                }
            ],
            IMPERVIOUS: [
                {
                    "id": "impvs.1",
                    "geometry": {"type": "Point", "coordinates": [126.766, 37.5034]},
                    "properties": {"impvs_rate": 84},
                }
            ],
        }
    )
    system = ClimateOpsSystem(source=source, rng=random.Random(5), weather_source=KMAWeatherSource(api_key=""))
    app.dependency_overrides[get_system] = lambda: system
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_risk_analysis_get_and_post(client: TestClient) -> None:
    resp = client.get("/api/risk-analysis", params={"mode": "summer"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["mode"] == "summer"
    assert [z["risk_score"] for z in data["zones"]] == [95, 92]
    assert data["summary"] == {"total_zones": 2, "high_risk": 2, "medium_risk": 0, "low_risk": 0}
    assert data["data_sources"] == ["cfm_sgg_41_100yr_1h", "impvs"]
    assert data["agent_messages"][0]["type"] == "info"

    posted = client.post("/api/risk-analysis", json={"mode": "summer"})
    assert posted.status_code == 200
    assert posted.json()["summary"] == data["summary"]


def test_unknown_mode_is_rejected(client: TestClient) -> None:
    assert client.get("/api/risk-analysis", params={"mode": "tornado"}).status_code == 422
    assert client.post("/api/risk-analysis", json={"mode": "tornado"}).status_code == 422


def test_briefing_and_alert(client: TestClient) -> None:
    briefing = client.get("/api/briefing", params={"mode": "summer"}).json()
    assert [r["id"] for r in briefing["recommendations"]] == ["REC-001", "REC-002", "REC-003", "REC-004"]
    assert briefing["keyMetrics"]["criticalZones"] == 2
    assert len(briefing["riskPrediction"]) == 7

    alert = client.get("/api/alerts", params={"mode": "summer"}).json()
    assert alert["type"] == "safety-guidance-text"
    assert alert["channels"] == ["CBS", "SMS"]


def test_deployment_uses_camel_case_contract(client: TestClient) -> None:
    data = client.get("/api/deployment", params={"mode": "summer"}).json()

    assert len(data["suggestions"]) == 2
    first = data["suggestions"][0]
    assert {"targetZone", "vehicle", "estimatedArrival", "alternativeVehicles"} <= set(first)
    assert data["summary"]["criticalZonesCount"] == 2
    assert data["summary"]["availableVehicles"] == 2


def test_reports_json_and_pdf(client: TestClient) -> None:
    report = client.get("/api/reports", params={"mode": "summer"}).json()
    assert report["situationOverview"]["currentStatus"] == "emergency-level-2"
    assert report["situationOverview"]["affectedAreas"] == ["Suwon", "Gyeonggi"]

    pdf = client.get("/api/reports/pdf", params={"mode": "summer"})
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_weather_and_vehicles(client: TestClient) -> None:
    weather = client.get("/api/weather", params={"mode": "heat"}).json()
    assert weather["current"]["temperature"] == 36.0
    assert weather["recommendedMode"] == "heat"
    assert weather["modeReasons"]["heat"]["active"] is True

    fleet = client.get("/api/vehicles", params={"mode": "winter"}).json()
    assert len(fleet["vehicles"]) == 5
    assert fleet["resources"][0]["type"] == "snowplow"
