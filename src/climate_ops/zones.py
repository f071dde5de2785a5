from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from climate_ops.attributes import lookup, lookup_float, lookup_str
from climate_ops.config import FETCH_TIMEOUT, FETCH_WORKERS
from climate_ops.geometry import GeometryResolver
from climate_ops.logging_setup import logger
from climate_ops.models import MODES, RiskSummary, RiskZone
from climate_ops.scoring import (
    FLOOD,
    HEAT,
    HEAT_SCORE_KEYS,
    HIGH_RISK_THRESHOLD,
    ICE,
    MEDIUM_RISK_THRESHOLD,
    calculate_risk_score,
    clamp_score,
    status_for_score,
)
from climate_ops.sources import Feature, FeatureSource, FeatureSourceError

# layer ids
FLOOD_100YR_1H = "cfm_sgg_41_100yr_1h"
IMPERVIOUS = "impvs"
STEEP_SLOPE = "slop_20_ovr"
HIGH_ALTITUDE = "altd_1000_ovr"
MOUNTAIN_RIVER = "mountdstc_rvr"
ROADS = "sprd_rw_41"
LANDSLIDE_GRADE1 = "ldsld_grd1"
LANDSLIDE_WEAK = "ldsld_weak_rgn"
CLIMATE_VULNERABILITY = "clim_weak_rgn_scr"
HEAT_SHELTER = "swtr_rstar"

# (layer, max features requested), in processing order
MODE_LAYERS = MappingProxyType(
    {
        "winter": ((STEEP_SLOPE, 200), (HIGH_ALTITUDE, 150), (MOUNTAIN_RIVER, 100), (ROADS, 100)),
        "summer": ((FLOOD_100YR_1H, 200), (IMPERVIOUS, 100)),
        "landslide": ((LANDSLIDE_GRADE1, 200), (LANDSLIDE_WEAK, 100)),
        "heat": ((CLIMATE_VULNERABILITY, 300), (HEAT_SHELTER, 100)),
    }
)

MODE_ZONE_CAPS = MappingProxyType({"winter": 25, "summer": 20, "landslide": 20, "heat": 20})

SHELTER_RISK_SCORE = 10
HIGH_ALTITUDE_SCORE = 88
MOUNTAIN_RIVER_SCORE = 78
MAJOR_ROAD_SCORE = 72
LANDSLIDE_GRADE1_SCORE = 95
LANDSLIDE_WEAK_SCORE = 82
HEAT_ZONE_MAX_SCORE = 95
IMPERVIOUS_MIN_RATE = 80
HEAT_MIN_SCORE = 50

MAJOR_ROAD_MARKERS = ("고속", "국도", "expressway", "national")

ZoneFactory = Callable[[Sequence[Feature], GeometryResolver], List[RiskZone]]


def format_value(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _feature_key(feature: Feature, idx: int) -> str:
    return feature.id if feature.id else str(idx)


def _zone(
    zone_id: str,
    name: str,
    feature: Feature,
    resolver: GeometryResolver,
    risk_score: int,
    reason: str,
    mode: str,
    source_layer: str,
    details: Dict[str, object],
    safe_infrastructure: bool = False,
) -> RiskZone:
    return RiskZone(
        id=zone_id,
        name=name,
        coordinates=resolver.resolve(feature.geometry, feature.properties),
        risk_score=risk_score,
        reason=reason,
        status=status_for_score(risk_score, safe_infrastructure=safe_infrastructure),
        mode=mode,
        source_layer=source_layer,
        details=details,
    )


# --- summer ---


def flood_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    zones = []
    for idx, feature in enumerate(features):
        props = feature.properties
        score = calculate_risk_score(props, FLOOD)
        if score < MEDIUM_RISK_THRESHOLD:
            continue
        grid_code = lookup(props, "grid_code")
        region = lookup_str(props, "sgg_nm", default="Gyeonggi")
        zones.append(
            _zone(
                f"FLOOD-{_feature_key(feature, idx)}",
                f"{region} flood risk area",
                feature,
                resolver,
                score,
                f"100-year storm flood-prone area (depth grade: {format_value(grid_code) if grid_code is not None else 'N/A'})",
                "summer",
                FLOOD_100YR_1H,
                {"grid_code": grid_code, "area": lookup(props, "area"), "sgg_nm": lookup(props, "sgg_nm")},
            )
        )
    return zones


def impervious_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    zones = []
    for idx, feature in enumerate(features):
        rate = lookup_float(feature.properties, "impvs_rate", default=0)
        if rate < IMPERVIOUS_MIN_RATE:
            continue
        score = clamp_score(min(95, 50 + rate * 0.5))
        zones.append(
            _zone(
                f"IMPERV-{_feature_key(feature, idx)}",
                "Impervious surface cluster",
                feature,
                resolver,
                score,
                f"Impervious surface rate {format_value(rate)}% - poor drainage expected",
                "summer",
                IMPERVIOUS,
                {"impervious_rate": rate},
            )
        )
    return zones


# --- winter ---


def steep_slope_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    zones = []
    for idx, feature in enumerate(features):
        props = feature.properties
        slope = lookup_float(props, "slope_deg", default=20)
        score = calculate_risk_score(props, ICE)
        zones.append(
            _zone(
                f"ICE-SLOPE-{_feature_key(feature, idx)}",
                "Steep-slope icing section",
                feature,
                resolver,
                score,
                f"Steep section with {format_value(slope)} degree slope - skid hazard when iced",
                "winter",
                STEEP_SLOPE,
                {"slope": slope, "area": lookup(props, "area")},
            )
        )
    return zones


def high_altitude_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    return [
        _zone(
            f"ICE-ALT-{_feature_key(feature, idx)}",
            "High-altitude icing zone",
            feature,
            resolver,
            HIGH_ALTITUDE_SCORE,
            "Highland above 1000m - low temperatures keep icing risk high",
            "winter",
            HIGH_ALTITUDE,
            {"altitude": lookup(feature.properties, "altitude", default=1000), "area": lookup(feature.properties, "area")},
        )
        for idx, feature in enumerate(features)
    ]


def mountain_river_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    return [
        _zone(
            f"ICE-RIVER-{_feature_key(feature, idx)}",
            "Shaded section near mountain stream",
            feature,
            resolver,
            MOUNTAIN_RIVER_SCORE,
            "Adjacent to a mountain stream - moisture and shade raise icing risk",
            "winter",
            MOUNTAIN_RIVER,
            {"river_name": lookup(feature.properties, "river_nm")},
        )
        for idx, feature in enumerate(features)
    ]


def is_major_road(road_type: str) -> bool:
    lowered = road_type.lower()
    return any(marker in lowered for marker in MAJOR_ROAD_MARKERS)


def major_road_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    zones = []
    for idx, feature in enumerate(features):
        props = feature.properties
        road_type = lookup_str(props, "rd_type")
        if not is_major_road(road_type):
            continue
        road_name = lookup_str(props, "rd_nm", default="Arterial road")
        zones.append(
            _zone(
                f"ICE-ROAD-{_feature_key(feature, idx)}",
                f"{road_name} icing watch",
                feature,
                resolver,
                MAJOR_ROAD_SCORE,
                f"Major arterial road ({road_type}) - heavy traffic makes icing accidents severe",
                "winter",
                ROADS,
                {"road_name": lookup(props, "rd_nm"), "road_type": road_type, "length": lookup(props, "length")},
            )
        )
    return zones


# --- landslide ---


def landslide_grade1_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    zones = []
    for idx, feature in enumerate(features):
        props = feature.properties
        region = lookup_str(props, "sgg_nm")
        zones.append(
            _zone(
                f"LANDSLIDE-G1-{_feature_key(feature, idx)}",
                f"{region} landslide grade-1 zone".strip(),
                feature,
                resolver,
                LANDSLIDE_GRADE1_SCORE,
                "Designated landslide risk grade-1 zone - top-priority watch",
                "landslide",
                LANDSLIDE_GRADE1,
                {"sgg_nm": lookup(props, "sgg_nm"), "emd_nm": lookup(props, "emd_nm")},
            )
        )
    return zones


def landslide_weak_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    return [
        _zone(
            f"LANDSLIDE-WEAK-{_feature_key(feature, idx)}",
            "Landslide-vulnerable area",
            feature,
            resolver,
            LANDSLIDE_WEAK_SCORE,
            "Designated landslide-vulnerable area - watch closely under heavy rain",
            "landslide",
            LANDSLIDE_WEAK,
            dict(feature.properties),
        )
        for idx, feature in enumerate(features)
    ]


# --- heat ---


def heat_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    zones = []
    for idx, feature in enumerate(features):
        props = feature.properties
        heat_score = lookup_float(props, *HEAT_SCORE_KEYS, default=0)
        if heat_score < HEAT_MIN_SCORE:
            continue
        score = min(HEAT_ZONE_MAX_SCORE, calculate_risk_score(props, HEAT))
        region = lookup_str(props, "sgg_nm")
        district = lookup_str(props, "stdg_nm")
        location = f"{region} {district}".strip() if district else (region or "Gyeonggi")
        zones.append(
            _zone(
                f"HEAT-{_feature_key(feature, idx)}",
                f"{location} heat-vulnerable area",
                feature,
                resolver,
                score,
                (
                    f"Heat risk score {heat_score:.1f}. Vulnerable residents (elderly living alone, "
                    "outdoor workers) likely concentrated. Mobile shelter deployment advised."
                ),
                "heat",
                CLIMATE_VULNERABILITY,
                {
                    "heat_score": heat_score,
                    "sgg_nm": region,
                    "stdg_nm": district,
                    "rain_score": lookup(props, "hvyrain_dngr_scr"),
                    "landslide_score": lookup(props, "ldsld_dngr_scr"),
                },
            )
        )
    return zones


def shelter_zones(features: Sequence[Feature], resolver: GeometryResolver) -> List[RiskZone]:
    zones = []
    for idx, feature in enumerate(features):
        props = feature.properties
        name = lookup_str(props, "nm", default="Cooling shelter")
        address = lookup_str(props, "addr")
        zones.append(
            _zone(
                f"SHELTER-{_feature_key(feature, idx)}",
                name,
                feature,
                resolver,
                SHELTER_RISK_SCORE,
                f"Existing cooling shelter ({address or 'address unknown'})",
                "heat",
                HEAT_SHELTER,
                {
                    "name": name,
                    "address": address,
                    "tel": lookup(props, "tel"),
                    "capacity": lookup(props, "capacity"),
                    "type": "existing-infrastructure",
                },
                safe_infrastructure=True,
            )
        )
    return zones


def dedupe_zones(zones: Iterable[RiskZone]) -> List[RiskZone]:
    seen = set()
    out = []
    for zone in zones:
        if zone.id in seen:
            continue
        seen.add(zone.id)
        out.append(zone)
    return out


def rank_zones(zones: Iterable[RiskZone], limit: Optional[int] = None) -> List[RiskZone]:
    # sorted() is stable, ties keep source order
    ranked = sorted(dedupe_zones(zones), key=lambda zone: zone.risk_score, reverse=True)
    return ranked if limit is None else ranked[:limit]


def summarize_zones(zones: Sequence[RiskZone], mode: str) -> RiskSummary:
    high = sum(1 for z in zones if z.risk_score >= HIGH_RISK_THRESHOLD)
    medium = sum(1 for z in zones if MEDIUM_RISK_THRESHOLD <= z.risk_score < HIGH_RISK_THRESHOLD)
    low = sum(1 for z in zones if z.risk_score < MEDIUM_RISK_THRESHOLD)
    shelters = None
    if mode == "heat":
        shelters = sum(1 for z in zones if z.source_layer == HEAT_SHELTER)
    return RiskSummary(total_zones=len(zones), high_risk=high, medium_risk=medium, low_risk=low, shelters=shelters)


class RiskZoneBuilder:
    """Fetches a mode's layers and turns their features into ranked risk zones."""

    def __init__(
        self,
        source: FeatureSource,
        resolver: Optional[GeometryResolver] = None,
        workers: int = FETCH_WORKERS,
        timeout: float = FETCH_TIMEOUT,
    ) -> None:
        self.source = source
        self.resolver = resolver or GeometryResolver()
        self.workers = max(1, workers)
        self.timeout = timeout

    def _fetch_one(self, layer: str, max_features: int) -> List[Feature]:
        return list(self.source.fetch(layer, max_features).features)

    def fetch_layers(self, queries: Sequence[Tuple[str, int]]) -> Dict[str, List[Feature]]:
        """Fetch layers concurrently; a failed or slow layer comes back empty.

        Raises FeatureSourceError only when every layer failed.
        """
        results: Dict[str, List[Feature]] = {layer: [] for layer, _ in queries}
        failed = []
        executor = ThreadPoolExecutor(max_workers=min(self.workers, max(1, len(queries))))
        try:
            futures = {executor.submit(self._fetch_one, layer, limit): layer for layer, limit in queries}
            done, pending = wait(futures, timeout=self.timeout)
            for future in pending:
                future.cancel()
                failed.append(futures[future])
                logger.warning(f"[zones] {futures[future]}: fetch timed out after {self.timeout}s")
            for future in done:
                layer = futures[future]
                try:
                    results[layer] = future.result()
                except Exception as exc:
                    failed.append(layer)
                    logger.warning(f"[zones] {layer}: fetch failed, skipping layer: {exc}")
        finally:
            executor.shutdown(wait=False)
        if queries and len(failed) == len(queries):
            raise FeatureSourceError(f"all layers failed: {', '.join(failed)}")
        return results

    def _collect(self, mode: str, factories: Dict[str, ZoneFactory]) -> List[RiskZone]:
        layers = self.fetch_layers(MODE_LAYERS[mode])
        zones: List[RiskZone] = []
        for layer, _ in MODE_LAYERS[mode]:
            factory = factories.get(layer)
            if factory is not None:
                zones.extend(factory(layers[layer], self.resolver))
        return zones

    def analyze_winter(self) -> List[RiskZone]:
        zones = self._collect(
            "winter",
            {
                STEEP_SLOPE: steep_slope_zones,
                HIGH_ALTITUDE: high_altitude_zones,
                MOUNTAIN_RIVER: mountain_river_zones,
                ROADS: major_road_zones,
            },
        )
        return rank_zones(zones, MODE_ZONE_CAPS["winter"])

    def analyze_summer(self) -> List[RiskZone]:
        zones = self._collect("summer", {FLOOD_100YR_1H: flood_zones, IMPERVIOUS: impervious_zones})
        return rank_zones(zones, MODE_ZONE_CAPS["summer"])

    def analyze_landslide(self) -> List[RiskZone]:
        zones = self._collect("landslide", {LANDSLIDE_GRADE1: landslide_grade1_zones, LANDSLIDE_WEAK: landslide_weak_zones})
        return rank_zones(zones, MODE_ZONE_CAPS["landslide"])

    def analyze_heat(self) -> List[RiskZone]:
        layers = self.fetch_layers(MODE_LAYERS["heat"])
        risk = rank_zones(heat_zones(layers[CLIMATE_VULNERABILITY], self.resolver), MODE_ZONE_CAPS["heat"])
        shelters = shelter_zones(layers[HEAT_SHELTER], self.resolver)
        return dedupe_zones(risk + shelters)

    def analyze(self, mode: str) -> List[RiskZone]:
        analyzers = {
            "winter": self.analyze_winter,
            "summer": self.analyze_summer,
            "landslide": self.analyze_landslide,
            "heat": self.analyze_heat,
        }
        if mode not in analyzers:
            raise ValueError(f"unknown mode: {mode!r} (expected one of {', '.join(MODES)})")
        zones = analyzers[mode]()
        logger.info(f"[zones] {mode}: built {len(zones)} zones")
        return zones


def data_sources_for(mode: str) -> List[str]:
    return [layer for layer, _ in MODE_LAYERS.get(mode, ())]
