from __future__ import annotations

import random
import sys

from climate_ops.sources import KMAWeatherSource, StaticFeatureSource
from climate_ops.system import ClimateOpsSystem, normalize_mode


def sample_source() -> StaticFeatureSource:
    return StaticFeatureSource(
        {
            "cfm_sgg_41_100yr_1h": [
                {
                    "id": "cfm.1",
                    "geometry": {"type": "Point", "coordinates": [127.0286, 37.2636]},
                    "properties": {"grid_code": 4, "sgg_nm": "Suwon"},
                },
                {
                    "id": "cfm.2",
                    "geometry": {"type": "Point", "coordinates": [126.7660, 37.5034]},
                    "properties": {"grid_code": 3, "sgg_nm": "Bucheon"},
                },
            ],
            "impvs": [
                {
                    "id": "impvs.1",
                    "geometry": {
                        "type": "Polygon",
                        "coordinates": [[[126.95, 37.39], [126.96, 37.39], [126.96, 37.40], [126.95, 37.40]]],
                    },
                    "properties": {"impvs_rate": 92},
                }
            ],
            "slop_20_ovr": [
                {"id": "slope.1", "geometry": None, "properties": {"slope_deg": 31, "sgg_nm": "Pocheon"}},
            ],
            "altd_1000_ovr": [
                {"id": "alt.1", "geometry": {"type": "Point", "coordinates": [127.5095, 37.8315]}, "properties": {}},
            ],
            "ldsld_grd1": [
                {
                    "id": "ldsld.1",
                    "geometry": {"type": "Point", "coordinates": [127.2003, 37.8949]},
                    "properties": {"sgg_nm": "Pocheon", "emd_nm": "Ildong"},
                }
            ],
            "clim_weak_rgn_scr": [
                {
                    "id": "clim.1",
                    "geometry": {"type": "Point", "coordinates": [127.1267, 37.4200]},
                    "properties": {"htwv_dngr_scr": 88.5, "sgg_nm": "Seongnam", "stdg_nm": "Sujeong"},
                }
            ],
            "swtr_rstar": [
                {
                    "id": "shelter.1",
                    "geometry": {"type": "Point", "coordinates": [127.1300, 37.4210]},
                    "properties": {"nm": "Sujeong community centre", "addr": "Seongnam Sujeong-gu"},
                }
            ],
        }
    )


def main(mode: str = "summer") -> None:
    system = ClimateOpsSystem(source=sample_source(), rng=random.Random(7), weather_source=KMAWeatherSource(api_key=""))
    mode = normalize_mode(mode)
    result = system.analyze(mode)
    plan = system.plan_deployment(mode)
    briefing = system.brief(mode)

    print(f"=== Climate Ops: {mode} analysis ===")
    summary = result.summary
    print(f"Zones: {summary.total_zones} (high {summary.high_risk}, medium {summary.medium_risk}, low {summary.low_risk})")
    print(f"Data sources: {', '.join(result.data_sources) or 'None'}")

    print("\nAgent log:")
    for msg in result.agent_messages:
        print(f" [{msg.type}] {msg.message}")

    print("\nTop zones:")
    for zone in result.zones[:5]:
        lat, lng = zone.coordinates.as_pair()
        print(f" - {zone.id}: {zone.name} score={zone.risk_score} status={zone.status} @ ({lat:.4f}, {lng:.4f})")

    print("\nDeployment:")
    for suggestion in plan.suggestions:
        print(
            f" - [{suggestion.priority}] {suggestion.vehicle.id} -> {suggestion.target_zone.name} "
            f"({suggestion.distance} km, ETA {suggestion.estimated_arrival} min)"
        )
    for line in plan.summary.recommendations:
        print(f"   * {line}")

    print("\nBriefing:")
    print(f" {briefing.situation_summary}")
    print(f" Trend: {briefing.forecast.trend}")
    for rec in briefing.recommendations:
        print(f" - {rec.id} [{rec.priority}] {rec.action}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "summer")
