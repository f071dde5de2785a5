from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from climate_ops.attributes import lookup
from climate_ops.models import Coordinates

# Gyeonggi province, Pyeongtaek south edge to Yeoncheon north edge.
BOUNDS_LAT = (36.95, 38.05)
BOUNDS_LNG = (126.35, 127.85)
REGION_CENTROID = (37.4138, 127.0296)

JITTER_DEG = 0.025

NAME_FIELDS = ("sgg_nm", "emd_nm", "nm", "addr")

# (aliases, (lat, lng)); first alias is the Korean administrative name.
GAZETTEER: Tuple[Tuple[Tuple[str, ...], Tuple[float, float]], ...] = (
    (("수원", "Suwon"), (37.2636, 127.0286)),
    (("성남", "Seongnam"), (37.4200, 127.1267)),
    (("용인", "Yongin"), (37.2411, 127.1776)),
    (("안양", "Anyang"), (37.3943, 126.9568)),
    (("안산", "Ansan"), (37.3219, 126.8309)),
    (("고양", "Goyang"), (37.6584, 126.8320)),
    (("부천", "Bucheon"), (37.5034, 126.7660)),
    (("광명", "Gwangmyeong"), (37.4786, 126.8644)),
    (("평택", "Pyeongtaek"), (36.9921, 127.0857)),
    (("시흥", "Siheung"), (37.3800, 126.8029)),
    (("파주", "Paju"), (37.7126, 126.7610)),
    (("의정부", "Uijeongbu"), (37.7381, 127.0337)),
    (("김포", "Gimpo"), (37.6152, 126.7156)),
    (("화성", "Hwaseong"), (37.1994, 126.8312)),
    (("광주", "Gwangju"), (37.4095, 127.2550)),
    (("군포", "Gunpo"), (37.3617, 126.9352)),
    (("오산", "Osan"), (37.1498, 127.0697)),
    (("하남", "Hanam"), (37.5393, 127.2148)),
    (("남양주", "Namyangju"), (37.6360, 127.2166)),
    (("양주", "Yangju"), (37.7853, 127.0456)),
    (("이천", "Icheon"), (37.2723, 127.4349)),
    (("구리", "Guri"), (37.5943, 127.1295)),
    (("포천", "Pocheon"), (37.8949, 127.2003)),
    (("양평", "Yangpyeong"), (37.4917, 127.4877)),
    (("동두천", "Dongducheon"), (37.9035, 127.0604)),
    (("과천", "Gwacheon"), (37.4292, 126.9876)),
    (("의왕", "Uiwang"), (37.3449, 126.9683)),
    (("여주", "Yeoju"), (37.2983, 127.6375)),
    (("가평", "Gapyeong"), (37.8315, 127.5095)),
    (("연천", "Yeoncheon"), (38.0965, 127.0747)),
    (("경기", "Gyeonggi"), REGION_CENTROID),
)


def is_within_bounds(lat: float, lng: float) -> bool:
    return BOUNDS_LAT[0] <= lat <= BOUNDS_LAT[1] and BOUNDS_LNG[0] <= lng <= BOUNDS_LNG[1]


def clamp_to_bounds(lat: float, lng: float) -> Tuple[float, float]:
    return (
        min(BOUNDS_LAT[1], max(BOUNDS_LAT[0], lat)),
        min(BOUNDS_LNG[1], max(BOUNDS_LNG[0], lng)),
    )


def gazetteer_lookup(name: str) -> Optional[Tuple[float, float]]:
    lowered = name.lower()
    for aliases, coords in GAZETTEER:
        if any(alias.lower() in lowered for alias in aliases):
            return coords
    return None


# --- geometry variants ---

Position = Tuple[float, float]  # (x, y) == (lng, lat) in GeoJSON order


@dataclass(frozen=True)
class PointGeometry:
    position: Position


@dataclass(frozen=True)
class PolygonGeometry:
    ring: Tuple[Position, ...]


@dataclass(frozen=True)
class LineGeometry:
    line: Tuple[Position, ...]


@dataclass(frozen=True)
class UnsupportedGeometry:
    kind: str = "unknown"


Geometry = Union[PointGeometry, PolygonGeometry, LineGeometry, UnsupportedGeometry]


def _position(raw: Any) -> Position:
    if not isinstance(raw, Sequence) or isinstance(raw, str) or len(raw) < 2:
        raise ValueError("position needs two numbers")
    x, y = float(raw[0]), float(raw[1])
    return (x, y)


def _positions(raw: Any) -> Tuple[Position, ...]:
    if not isinstance(raw, Sequence) or isinstance(raw, str):
        raise ValueError("expected a list of positions")
    return tuple(_position(item) for item in raw)


def _first(raw: Any) -> Any:
    if not isinstance(raw, Sequence) or isinstance(raw, str):
        raise ValueError("expected a nested list")
    return raw[0] if raw else []


def parse_geometry(raw: Optional[Mapping[str, Any]]) -> Geometry:
    """Turn a GeoJSON geometry dict into one of the geometry variants.

    Only the parts the resolver needs are kept: the first ring of a
    (multi)polygon and the first line of a multilinestring. Anything
    malformed becomes ``UnsupportedGeometry``.
    """
    if not raw or not isinstance(raw, Mapping):
        return UnsupportedGeometry("missing")

    kind = str(raw.get("type") or "")
    coords = raw.get("coordinates")
    try:
        if kind == "Point":
            return PointGeometry(_position(coords))
        if kind == "Polygon":
            return PolygonGeometry(_positions(_first(coords)))
        if kind == "MultiPolygon":
            return PolygonGeometry(_positions(_first(_first(coords))))
        if kind == "LineString":
            return LineGeometry(_positions(coords))
        if kind == "MultiLineString":
            return LineGeometry(_positions(_first(coords)))
    except (ValueError, TypeError, IndexError):
        return UnsupportedGeometry(kind or "malformed")
    return UnsupportedGeometry(kind or "unknown")


def representative_position(geometry: Geometry) -> Optional[Position]:
    if isinstance(geometry, PointGeometry):
        return geometry.position
    if isinstance(geometry, PolygonGeometry):
        if not geometry.ring:
            return None
        n = len(geometry.ring)
        return (sum(p[0] for p in geometry.ring) / n, sum(p[1] for p in geometry.ring) / n)
    if isinstance(geometry, LineGeometry):
        if not geometry.line:
            return None
        return geometry.line[len(geometry.line) // 2]
    return None


class GeometryResolver:
    """Resolves a feature to a single (lat, lng) inside the operating region."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def _jitter(self) -> float:
        return self.rng.uniform(-JITTER_DEG, JITTER_DEG)

    def fallback(self, properties: Optional[Mapping[str, Any]] = None) -> Coordinates:
        base = REGION_CENTROID
        for field_name in NAME_FIELDS:
            value = lookup(properties, field_name)
            if isinstance(value, str):
                coords = gazetteer_lookup(value)
                if coords:
                    base = coords
                    break
        lat, lng = clamp_to_bounds(base[0] + self._jitter(), base[1] + self._jitter())
        return Coordinates(lat, lng)

    def resolve(self, raw_geometry: Optional[Mapping[str, Any]], properties: Optional[Mapping[str, Any]] = None) -> Coordinates:
        position = representative_position(parse_geometry(raw_geometry))
        if position is None:
            return self.fallback(properties)

        lng, lat = position
        if is_within_bounds(lat, lng):
            return Coordinates(lat, lng)
        # some layers come back with axes swapped
        if is_within_bounds(lng, lat):
            return Coordinates(lng, lat)
        return self.fallback(properties)

