from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple

from climate_ops.fleet import speed_for
from climate_ops.logging_setup import logger
from climate_ops.models import (
    Coordinates,
    DeploymentPlan,
    DeploymentSuggestion,
    DeploymentSummary,
    RiskZone,
    Vehicle,
)
from climate_ops.scoring import HIGH_RISK_THRESHOLD, MEDIUM_RISK_THRESHOLD

DISPATCH_THRESHOLD = MEDIUM_RISK_THRESHOLD
CRITICAL_PRIORITY_SCORE = 90
HIGH_PRIORITY_SCORE = 70
MAX_ALTERNATIVES = 2
SLOW_RESPONSE_MINUTES = 30

AVAILABLE_STATUSES = frozenset({"idle"})


def haversine_km(origin: Coordinates, target: Coordinates) -> float:
    r = 6371.0
    lat1, lon1 = math.radians(origin.latitude), math.radians(origin.longitude)
    lat2, lon2 = math.radians(target.latitude), math.radians(target.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return r * c


def eta_minutes(distance_km: float, vehicle_type: str) -> int:
    return max(1, math.ceil(distance_km / speed_for(vehicle_type) * 60))


def priority_for_score(risk_score: int) -> str:
    if risk_score >= CRITICAL_PRIORITY_SCORE:
        return "critical"
    if risk_score >= HIGH_PRIORITY_SCORE:
        return "high"
    return "medium"


def dispatch_worthy(zones: Iterable[RiskZone]) -> List[RiskZone]:
    return sorted((z for z in zones if z.risk_score >= DISPATCH_THRESHOLD), key=lambda z: z.risk_score, reverse=True)


def available_vehicles(vehicles: Iterable[Vehicle]) -> List[Vehicle]:
    return [v for v in vehicles if v.status in AVAILABLE_STATUSES]


class DeploymentPlanner:
    """Matches idle vehicles to the highest-risk zones, nearest vehicle first."""

    def rank_vehicles(self, zone: RiskZone, vehicles: Iterable[Vehicle]) -> List[Tuple[float, Vehicle]]:
        ranked = [(haversine_km(vehicle.location, zone.coordinates), vehicle) for vehicle in vehicles]
        ranked.sort(key=lambda item: item[0])
        return ranked

    def plan(self, zones: Sequence[RiskZone], vehicles: Sequence[Vehicle], mode: str = "") -> DeploymentPlan:
        if not zones or not vehicles:
            return DeploymentPlan(suggestions=[], summary=DeploymentSummary())

        targets = dispatch_worthy(zones)
        idle = available_vehicles(vehicles)
        assigned = set()
        suggestions: List[DeploymentSuggestion] = []

        for zone in targets:
            candidates = self.rank_vehicles(zone, (v for v in idle if v.id not in assigned))
            if not candidates:
                break

            distance, vehicle = candidates[0]
            eta = eta_minutes(distance, vehicle.type)
            assigned.add(vehicle.id)
            alternatives = [
                replace(alt, eta=eta_minutes(alt_distance, alt.type))
                for alt_distance, alt in candidates[1 : 1 + MAX_ALTERNATIVES]
            ]

            suggestions.append(
                DeploymentSuggestion(
                    id=f"DEP-{len(suggestions) + 1:03d}",
                    priority=priority_for_score(zone.risk_score),
                    target_zone=zone,
                    vehicle=replace(vehicle, eta=eta, assigned_zone=zone.id),
                    distance=round(distance, 2),
                    estimated_arrival=eta,
                    reason=self._reason(zone, vehicle, distance, eta),
                    alternative_vehicles=alternatives,
                )
            )

        summary = self._summarize(zones, targets, idle, suggestions)
        logger.info(
            f"[deployment] {mode or 'mixed'}: {len(suggestions)} suggestions for {len(targets)} zones, "
            f"{len(idle)} vehicles available"
        )
        return DeploymentPlan(suggestions=suggestions, summary=summary)

    @staticmethod
    def _reason(zone: RiskZone, vehicle: Vehicle, distance: float, eta: int) -> str:
        return (
            f"{zone.name} at risk {zone.risk_score}%. Nearest available {vehicle.type} "
            f"{vehicle.id} is {distance:.1f} km away (ETA {eta} min)."
        )

    @staticmethod
    def _summarize(
        zones: Sequence[RiskZone],
        targets: Sequence[RiskZone],
        idle: Sequence[Vehicle],
        suggestions: Sequence[DeploymentSuggestion],
    ) -> DeploymentSummary:
        critical = sum(1 for z in zones if z.risk_score >= HIGH_RISK_THRESHOLD)
        avg_eta = 0.0
        if suggestions:
            avg_eta = round(sum(s.estimated_arrival for s in suggestions) / len(suggestions), 1)

        covered = {s.target_zone.id for s in suggestions}
        uncovered_critical = sum(1 for z in targets if z.risk_score >= HIGH_RISK_THRESHOLD and z.id not in covered)
        uncovered = len(targets) - len(covered)

        lines = []
        if not idle:
            lines.append("No vehicles are available. Recall vehicles from completed work or request mutual aid.")
        if uncovered_critical:
            lines.append(f"Insufficient vehicles for {uncovered_critical} critical zones. Request support from neighbouring cities.")
        elif uncovered:
            lines.append(f"{uncovered} watch zones have no assigned vehicle. Assign as vehicles become free.")
        if avg_eta > SLOW_RESPONSE_MINUTES:
            lines.append(f"Average response time {avg_eta} min exceeds {SLOW_RESPONSE_MINUTES} min. Pre-position vehicles closer to risk zones.")
        if suggestions and not uncovered:
            lines.append("All dispatch-worthy zones have an assigned vehicle.")

        return DeploymentSummary(
            critical_zones_count=critical,
            available_vehicles=len(idle),
            avg_response_time=avg_eta,
            recommendations=lines,
        )
