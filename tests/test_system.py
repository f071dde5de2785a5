import random
import threading
from datetime import datetime

from climate_ops.sources import FeatureCollection, FeatureSourceError, KMAWeatherSource, StaticFeatureSource
from climate_ops.system import ClimateOpsSystem, normalize_mode
from climate_ops.zones import CLIMATE_VULNERABILITY, FLOOD_100YR_1H, HEAT_SHELTER, LANDSLIDE_GRADE1, RiskZoneBuilder


def _point(fid: str, lng: float, lat: float, **props) -> dict:
    return {"id": fid, "geometry": {"type": "Point", "coordinates": [lng, lat]}, "properties": props}


def _system(layers: dict) -> ClimateOpsSystem:
    return ClimateOpsSystem(
        source=StaticFeatureSource(layers), rng=random.Random(3), weather_source=KMAWeatherSource(api_key="")
    )


class _ExplodingBuilder:
    def analyze(self, mode: str):
        raise RuntimeError("layer schema changed")


class _HangingSource(StaticFeatureSource):
    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()

    def fetch(self, layer: str, max_features: int = 100) -> FeatureCollection:
        self.release.wait(5)
        return super().fetch(layer, max_features)


def test_analysis_result_is_complete() -> None:
    system = _system(
        {
            FLOOD_100YR_1H: [
                _point("f1", 127.0286, 37.2636, grid_code=4, sgg_nm="Suwon"),
                _point("f2", 126.7660, 37.5034, grid_code=3, sgg_nm="Bucheon"),
            ]
        }
    )

    result = system.analyze("summer")

    assert result.mode == "summer"
    assert [z.risk_score for z in result.zones] == [95, 85]
    assert result.summary.high_risk == 2
    assert result.data_sources == ["cfm_sgg_41_100yr_1h", "impvs"]
    assert result.agent_messages[-1].type == "action"
    data = result.to_dict()
    assert data["zones"][0]["coordinates"] == [37.2636, 127.0286]
    assert "shelters" not in data["summary"]


def test_failed_analysis_degrades_gracefully() -> None:
    system = ClimateOpsSystem(builder=_ExplodingBuilder())
    now = datetime(2025, 7, 1, 12, 0)

    result = system.analyze("heat", now=now)

    assert result.mode == "heat"
    assert result.zones == []
    assert result.summary.total_zones == 0
    assert result.data_sources == []
    assert len(result.agent_messages) == 1
    assert result.agent_messages[0].type == "alert"
    assert "Data retrieval failed. Retrying..." in result.agent_messages[0].message
    assert result.timestamp == now


def test_total_source_outage_degrades() -> None:
    system = _system({FLOOD_100YR_1H: FeatureSourceError("timeout"), "impvs": FeatureSourceError("timeout")})

    result = system.analyze("summer")

    assert result.zones == []
    assert result.data_sources == []
    assert [m.type for m in result.agent_messages] == ["alert"]


def test_empty_layers_yield_a_normal_result() -> None:
    result = _system({}).analyze("summer")

    assert result.zones == []
    assert result.data_sources == ["cfm_sgg_41_100yr_1h", "impvs"]
    assert result.agent_messages[-1].type == "success"


def test_unknown_mode_falls_back_to_winter() -> None:
    assert normalize_mode("Summer ") == "summer"
    assert normalize_mode("tornado") == "winter"
    assert normalize_mode(None) == "winter"
    assert _system({}).analyze("tornado").mode == "winter"


def test_heat_pipeline_counts_shelters_and_plans_shelters() -> None:
    system = _system(
        {
            CLIMATE_VULNERABILITY: [_point("c1", 127.1267, 37.42, htwv_dngr_scr=91, sgg_nm="Seongnam")],
            HEAT_SHELTER: [_point("s1", 127.13, 37.421, nm="Shelter")],
        }
    )

    result = system.analyze("heat")
    plan = system.plan_deployment("heat")

    assert result.summary.shelters == 1
    assert len(plan.suggestions) == 1
    assert plan.suggestions[0].vehicle.type == "mobile-shelter"
    assert plan.suggestions[0].priority == "critical"


def test_briefing_alert_and_report_share_the_mode() -> None:
    system = _system({LANDSLIDE_GRADE1: [_point(f"g{i}", 127.2003, 37.8949, sgg_nm="Pocheon") for i in range(4)]})

    briefing = system.brief("landslide")
    alert = system.alert("landslide")
    report = system.report("landslide")

    assert briefing.mode == "landslide"
    assert briefing.key_metrics.critical_zones == 4
    assert alert.type == "emergency-disaster-text"
    assert alert.target_area == "Pocheon"
    assert report.current_status == "emergency-level-3"
    assert [r.type for r in report.deployed_resources] == ["excavator", "ambulance", "fire-truck"]
    assert system.weather_condition("landslide").recommended_mode == "landslide"


def test_demo_prints_a_plan(capsys) -> None:
    from climate_ops.demo import main

    main("summer")

    out = capsys.readouterr().out
    assert "=== Climate Ops: summer analysis ===" in out
    assert "Deployment:" in out
    assert "REC-003" in out


def test_stalled_sources_degrade_the_analysis() -> None:
    source = _HangingSource()
    system = ClimateOpsSystem(builder=RiskZoneBuilder(source, timeout=0.2), weather_source=KMAWeatherSource(api_key=""))

    try:
        result = system.analyze("summer")
    finally:
        source.release.set()

    assert result.zones == []
    assert [m.type for m in result.agent_messages] == ["alert"]


def test_default_timestamps_are_timezone_aware() -> None:
    system = _system({})

    assert system.analyze("summer").timestamp.tzinfo is not None
    assert system.analyze("tornado").agent_messages[0].timestamp.tzinfo is not None
    assert system.weather("heat").timestamp.tzinfo is not None
    assert ClimateOpsSystem(builder=_ExplodingBuilder()).analyze("heat").timestamp.tzinfo is not None
