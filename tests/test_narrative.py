import random
from datetime import datetime
from typing import List

from climate_ops.fleet import mock_resources
from climate_ops.models import Coordinates, RiskZone
from climate_ops.narrative import (
    classify_trend,
    generate_agent_messages,
    generate_briefing,
    generate_emergency_alert,
    generate_recommendations,
    generate_situation_report,
    project_risk_levels,
)
from climate_ops.weather import mock_weather

NOW = datetime(2025, 1, 15, 6, 30)


def _zone(idx: int, score: int, mode: str = "winter", region: str = "Suwon", reason: str = "") -> RiskZone:
    return RiskZone(
        id=f"Z-{idx}",
        name=f"{region} zone {idx}",
        coordinates=Coordinates(37.26, 127.02),
        risk_score=score,
        reason=reason or f"Test reason for zone {idx}",
        status="needs-action" if score >= 80 else "in-progress",
        mode=mode,
        source_layer="test",
        details={"sgg_nm": region},
    )


def _zones(scores: List[int], mode: str = "winter") -> List[RiskZone]:
    return [_zone(i, s, mode) for i, s in enumerate(scores)]


def _weather(mode: str):
    return mock_weather(mode, rng=random.Random(0), now=NOW)


def test_forecast_trend_classification() -> None:
    assert classify_trend([30, 35, 38, 42, 40, 36, 32]) == "worsening"
    assert classify_trend([30, 35, 38, 40, 40, 36, 32]) == "stable"
    assert classify_trend([60, 60, 60]) == "stable"
    assert classify_trend([]) == "stable"


def test_projection_uses_default_level_without_zones() -> None:
    levels = [p.risk_level for p in project_risk_levels("summer", [], _weather("summer"))]

    assert levels == [30, 38, 45, 50, 48, 40, 35]


def test_projection_is_capped_at_100() -> None:
    predictions = project_risk_levels("landslide", _zones([95, 95], "landslide"), _weather("landslide"))

    assert [p.risk_level for p in predictions] == [95, 100, 100, 100, 100, 100, 100]
    assert "soil saturation" in predictions[3].factors
    assert "soil saturation" not in predictions[2].factors


def test_recommendations_follow_fixed_priority_order() -> None:
    zones = _zones([92, 85, 81, 60], "summer")

    recs = generate_recommendations("summer", zones)

    assert [r.id for r in recs] == ["REC-001", "REC-002", "REC-003", "REC-004"]
    assert [r.priority for r in recs] == ["critical", "high", "high", "medium"]
    assert recs[0].target_zone == "Z-0"
    assert recs[0].resource_count == 2
    assert recs[1].resource_count == 3


def test_recommendations_without_critical_zones() -> None:
    recs = generate_recommendations("landslide", _zones([60, 55], "landslide"))

    assert [r.id for r in recs] == ["REC-003", "REC-004"]
    assert recs[-1].priority == "critical"


def test_agent_log_structure_with_high_risk_zones() -> None:
    zones = _zones([95, 90, 88, 85, 60])
    sources = ["slop_20_ovr", "altd_1000_ovr", "mountdstc_rvr", "sprd_rw_41"]

    messages = generate_agent_messages("winter", zones, sources, now=NOW)

    assert len(messages) == 3 + 3 + 2
    assert messages[0].type == "info"
    assert messages[1].type == "data"
    assert messages[1].message.endswith("+1 more")
    assert [m.type for m in messages[3:6]] == ["alert", "alert", "alert"]
    assert "4 high-risk, 1 watch" in messages[6].message
    assert messages[-1].type == "action"
    assert "4 snowplows" in messages[-1].message
    assert "Suwon zone 0" in messages[-1].message
    timestamps = [m.timestamp for m in messages]
    assert timestamps == sorted(timestamps)
    assert len(set(timestamps)) == len(timestamps)
    assert messages[-1].timestamp == NOW


def test_landslide_dispatch_is_capped_at_three_teams() -> None:
    messages = generate_agent_messages("landslide", _zones([95] * 6, "landslide"), ["ldsld_grd1"], now=NOW)

    assert "3 excavator" in messages[-1].message


def test_zone_alert_reason_is_truncated() -> None:
    reason = "A" * 80
    zone = _zone(0, 90, reason=reason)

    messages = generate_agent_messages("winter", [zone], ["slop_20_ovr"], now=NOW)

    alert = messages[3].message
    assert "A" * 50 + "..." in alert
    assert "A" * 51 not in alert


def test_situation_normal_closes_quiet_batches() -> None:
    messages = generate_agent_messages("heat", _zones([60, 10], "heat"), ["clim_weak_rgn_scr"], now=NOW)

    assert len(messages) == 4
    assert messages[-1].type == "success"
    assert sum(1 for m in messages if m.type in ("action", "success")) == 1


def test_narratives_are_deterministic() -> None:
    zones = _zones([95, 82, 70])

    first = generate_agent_messages("winter", zones, ["a", "b"], now=NOW)
    second = generate_agent_messages("winter", zones, ["a", "b"], now=datetime(2030, 1, 1))
    assert [m.message for m in first] == [m.message for m in second]

    brief_a = generate_briefing("winter", zones, _weather("winter"), now=NOW)
    brief_b = generate_briefing("winter", zones, _weather("winter"), now=datetime(2030, 1, 1))
    assert brief_a.situation_summary == brief_b.situation_summary
    assert [r.action for r in brief_a.recommendations] == [r.action for r in brief_b.recommendations]


def test_briefing_key_metrics() -> None:
    briefing = generate_briefing("summer", _zones([95, 85, 60, 55, 51], "summer"), _weather("summer"), now=NOW)

    metrics = briefing.key_metrics
    assert metrics.total_risk_zones == 5
    assert metrics.critical_zones == 2
    assert metrics.deployed_resources == 3
    assert metrics.estimated_affected_population == 30000
    assert len(briefing.risk_prediction) == 7
    assert briefing.forecast.trend == "worsening"
    assert briefing.id.startswith("BRIEF-")
    assert "45.0mm" in briefing.situation_summary


def test_emergency_alert_type_depends_on_critical_count() -> None:
    weather = _weather("summer")
    zones = [_zone(0, 95, "summer", "Suwon"), _zone(1, 90, "summer", "Bucheon"), _zone(2, 85, "summer", "Suwon"), _zone(3, 81, "summer")]

    alert = generate_emergency_alert("summer", zones, weather, now=NOW)

    assert alert.type == "emergency-disaster-text"
    assert alert.channels == ["CBS", "SMS"]
    assert alert.based_on_zones == ["Z-0", "Z-1", "Z-2"]
    assert alert.target_area == "Suwon, Bucheon"
    assert len(alert.action_items) == 4
    assert alert.status == "draft"

    quiet = generate_emergency_alert("summer", zones[:2], weather, now=NOW)
    assert quiet.type == "safety-guidance-text"


def test_situation_report_status_levels() -> None:
    weather = _weather("heat")
    resources = mock_resources("heat")

    level3 = generate_situation_report("heat", _zones([90, 90, 90, 90], "heat"), weather, resources, now=NOW)
    level2 = generate_situation_report("heat", _zones([90], "heat"), weather, resources, now=NOW)
    watch = generate_situation_report("heat", _zones([60], "heat"), weather, resources, now=NOW)

    assert level3.current_status == "emergency-level-3"
    assert level2.current_status == "emergency-level-2"
    assert watch.current_status == "watch"
    assert level3.affected_areas == ["Suwon"]
    assert level3.deployed_resources == resources
    assert len(level3.recommendations) == 4
    assert level3.to_dict()["damageAssessment"]["propertyDamage"] == "being tallied"


def test_unsorted_zones_are_ranked_before_picking_the_top() -> None:
    zones = [_zone(0, 85, "summer", "Suwon"), _zone(1, 95, "summer", "Bucheon"), _zone(2, 90, "summer", "Osan")]

    messages = generate_agent_messages("summer", zones, ["cfm_sgg_41_100yr_1h"], now=NOW)
    recs = generate_recommendations("summer", zones)
    alert = generate_emergency_alert("summer", zones, _weather("summer"), now=NOW)

    assert "Bucheon zone 1" in messages[3].message
    assert "Bucheon zone 1" in messages[-1].message
    assert recs[0].target_zone == "Z-1"
    assert alert.based_on_zones == ["Z-1", "Z-2", "Z-0"]
    assert alert.target_area == "Bucheon, Osan, Suwon"
