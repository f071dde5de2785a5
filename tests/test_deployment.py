import pytest

from climate_ops.deployment import DeploymentPlanner, eta_minutes, haversine_km, priority_for_score
from climate_ops.fleet import mock_vehicles
from climate_ops.models import Coordinates, DeploymentSummary, RiskZone, Vehicle

SUWON = Coordinates(37.2636, 127.0286)
BUCHEON = Coordinates(37.5034, 126.7660)
SEONGNAM = Coordinates(37.4200, 127.1267)
POCHEON = Coordinates(37.8949, 127.2003)


def _zone(zone_id: str, score: int, location: Coordinates = SUWON) -> RiskZone:
    return RiskZone(
        id=zone_id,
        name=f"Zone {zone_id}",
        coordinates=location,
        risk_score=score,
        reason="test",
        status="needs-action" if score >= 80 else "in-progress",
        mode="summer",
        source_layer="test",
    )


def _vehicle(vehicle_id: str, location: Coordinates, status: str = "idle", vehicle_type: str = "water-pump") -> Vehicle:
    return Vehicle(id=vehicle_id, type=vehicle_type, name=vehicle_id, status=status, location=location)


def test_empty_inputs_give_empty_plan() -> None:
    planner = DeploymentPlanner()
    vehicles = [_vehicle("V1", SUWON)]
    zones = [_zone("Z1", 95)]

    for plan in (planner.plan([], vehicles, "summer"), planner.plan(zones, [], "summer"), planner.plan([], [], "summer")):
        assert plan.suggestions == []
        assert plan.summary == DeploymentSummary()
        assert plan.summary.critical_zones_count == 0
        assert plan.summary.available_vehicles == 0
        assert plan.to_dict()["summary"]["avgResponseTime"] == 0.0


def test_nearest_idle_vehicle_is_assigned_with_alternatives() -> None:
    vehicles = [
        _vehicle("FAR", POCHEON),
        _vehicle("NEAR", SUWON),
        _vehicle("BUSY", SUWON, status="working"),
        _vehicle("MID", SEONGNAM),
    ]

    plan = DeploymentPlanner().plan([_zone("Z1", 95)], vehicles, "summer")

    assert len(plan.suggestions) == 1
    suggestion = plan.suggestions[0]
    assert suggestion.vehicle.id == "NEAR"
    assert suggestion.vehicle.assigned_zone == "Z1"
    assert suggestion.distance == pytest.approx(0.0)
    assert suggestion.estimated_arrival == 1
    assert [v.id for v in suggestion.alternative_vehicles] == ["MID", "FAR"]
    assert all(v.eta is not None for v in suggestion.alternative_vehicles)
    assert suggestion.alternative_vehicles[0].eta <= suggestion.alternative_vehicles[1].eta


def test_no_vehicle_is_assigned_twice() -> None:
    zones = [_zone(f"Z{i}", 95 - i, SUWON) for i in range(5)]
    vehicles = [_vehicle("V1", SUWON), _vehicle("V2", BUCHEON), _vehicle("V3", SEONGNAM)]

    plan = DeploymentPlanner().plan(zones, vehicles, "summer")

    ids = [s.vehicle.id for s in plan.suggestions]
    assert len(ids) == 3
    assert len(set(ids)) == len(ids)
    assert [s.target_zone.id for s in plan.suggestions] == ["Z0", "Z1", "Z2"]


def test_priority_tiers_and_dispatch_threshold() -> None:
    zones = [_zone("LOW", 45), _zone("MED", 55), _zone("HIGH", 75), _zone("CRIT", 92)]
    vehicles = [_vehicle(f"V{i}", SUWON) for i in range(4)]

    plan = DeploymentPlanner().plan(zones, vehicles, "summer")

    assert [(s.target_zone.id, s.priority) for s in plan.suggestions] == [
        ("CRIT", "critical"),
        ("HIGH", "high"),
        ("MED", "medium"),
    ]
    assert priority_for_score(90) == "critical"
    assert priority_for_score(70) == "high"
    assert priority_for_score(69) == "medium"


def test_summary_flags_uncovered_critical_zones() -> None:
    zones = [_zone("Z1", 95), _zone("Z2", 90), _zone("Z3", 85)]
    vehicles = [_vehicle("V1", BUCHEON), _vehicle("V2", SUWON, status="dispatched")]

    plan = DeploymentPlanner().plan(zones, vehicles, "summer")

    summary = plan.summary
    assert summary.critical_zones_count == 3
    assert summary.available_vehicles == 1
    assert summary.avg_response_time == plan.suggestions[0].estimated_arrival
    assert any("Insufficient vehicles for 2 critical zones" in line for line in summary.recommendations)


def test_no_idle_vehicles_yields_no_suggestions() -> None:
    vehicles = [_vehicle("V1", SUWON, status="maintenance")]

    plan = DeploymentPlanner().plan([_zone("Z1", 95)], vehicles, "summer")

    assert plan.suggestions == []
    assert plan.summary.available_vehicles == 0
    assert plan.summary.avg_response_time == 0.0


def test_eta_grows_with_distance() -> None:
    assert eta_minutes(0.0, "snowplow") == 1
    assert eta_minutes(10.0, "snowplow") == 20
    assert eta_minutes(10.0, "ambulance") == 10
    assert eta_minutes(30.0, "excavator") >= eta_minutes(5.0, "excavator")


def test_haversine_distance() -> None:
    assert haversine_km(SUWON, SUWON) == pytest.approx(0.0)
    assert haversine_km(Coordinates(37.0, 127.0), Coordinates(38.0, 127.0)) == pytest.approx(111.19, abs=0.1)


def test_plans_against_mock_fleet_use_only_idle_units() -> None:
    zones = [_zone(f"Z{i}", 90) for i in range(4)]

    plan = DeploymentPlanner().plan(zones, mock_vehicles("winter"), "winter")

    assert {s.vehicle.id for s in plan.suggestions} == {"snowplow-01", "snowplow-02"}
    assert plan.summary.available_vehicles == 2
