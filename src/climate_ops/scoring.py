from __future__ import annotations

from typing import Any, Mapping, Optional

from climate_ops.attributes import lookup_float
from climate_ops.models import STATUS_IN_PROGRESS, STATUS_NEEDS_ACTION, STATUS_RESOLVED

FLOOD = "flood"
LANDSLIDE = "landslide"
ICE = "ice"
HEAT = "heat"

UNKNOWN_CATEGORY_SCORE = 50

HIGH_RISK_THRESHOLD = 80
MEDIUM_RISK_THRESHOLD = 50

# flood depth grade -> score, checked top-down
FLOOD_GRADES = ((4, 95), (3, 85), (2, 70))
ICE_SLOPES = ((30, 95), (25, 85), (20, 75))

HEAT_SCORE_KEYS = ("htwv_dngr_scr", "score")


def clamp_score(value: float) -> int:
    return int(max(0, min(100, round(value))))


def _flood_score(properties: Optional[Mapping[str, Any]]) -> int:
    grid_code = lookup_float(properties, "grid_code", default=0)
    for threshold, score in FLOOD_GRADES:
        if grid_code >= threshold:
            return score
    return 50


def _landslide_score(properties: Optional[Mapping[str, Any]]) -> int:
    grade = lookup_float(properties, "grade", default=1)
    if grade == 1:
        return 95
    if grade == 2:
        return 80
    return 60


def _ice_score(properties: Optional[Mapping[str, Any]]) -> int:
    slope = lookup_float(properties, "slope_deg", default=20)
    for threshold, score in ICE_SLOPES:
        if slope >= threshold:
            return score
    return 60


def _heat_score(properties: Optional[Mapping[str, Any]]) -> int:
    return clamp_score(min(100.0, lookup_float(properties, *HEAT_SCORE_KEYS, default=50)))


_SCORERS = {
    FLOOD: _flood_score,
    LANDSLIDE: _landslide_score,
    ICE: _ice_score,
    HEAT: _heat_score,
}


def calculate_risk_score(properties: Optional[Mapping[str, Any]], category: str) -> int:
    """Score a feature 0..100 from the attribute that matters for its hazard category.

    Missing or unparseable attributes fall back to the category default, so
    this never raises on bad upstream data.
    """
    scorer = _SCORERS.get(category)
    if scorer is None:
        return UNKNOWN_CATEGORY_SCORE
    return clamp_score(scorer(properties))


def status_for_score(risk_score: float, safe_infrastructure: bool = False) -> str:
    if safe_infrastructure:
        return STATUS_RESOLVED
    if risk_score >= HIGH_RISK_THRESHOLD:
        return STATUS_NEEDS_ACTION
    if risk_score >= MEDIUM_RISK_THRESHOLD:
        return STATUS_IN_PROGRESS
    return STATUS_RESOLVED
