from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import List, Optional

from climate_ops.deployment import DeploymentPlanner
from climate_ops.fleet import mock_resources, mock_vehicles
from climate_ops.geometry import GeometryResolver
from climate_ops.logging_setup import logger
from climate_ops.models import (
    MODES,
    AnalysisResult,
    Briefing,
    DeploymentPlan,
    EmergencyAlert,
    ResourceSummary,
    RiskSummary,
    SituationReport,
    Vehicle,
    WeatherCondition,
    WeatherData,
)
from climate_ops.narrative import (
    failure_message,
    generate_agent_messages,
    generate_briefing,
    generate_emergency_alert,
    generate_situation_report,
)
from climate_ops.sources import FeatureSource, KMAWeatherSource, WFSFeatureSource
from climate_ops.weather import weather_condition
from climate_ops.zones import RiskZoneBuilder, data_sources_for, summarize_zones

DEFAULT_MODE = "winter"


def normalize_mode(mode: Optional[str]) -> str:
    value = (mode or "").strip().lower()
    if value in MODES:
        return value
    logger.warning(f"[system] unknown mode {mode!r}, falling back to {DEFAULT_MODE}")
    return DEFAULT_MODE


class ClimateOpsSystem:
    """Entry point tying zone building, narratives and deployment planning together."""

    def __init__(
        self,
        source: Optional[FeatureSource] = None,
        resolver: Optional[GeometryResolver] = None,
        builder: Optional[RiskZoneBuilder] = None,
        planner: Optional[DeploymentPlanner] = None,
        rng: Optional[random.Random] = None,
        weather_source: Optional[KMAWeatherSource] = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.weather_source = weather_source or KMAWeatherSource()
        self.builder = builder or RiskZoneBuilder(
            source if source is not None else WFSFeatureSource(),
            resolver=resolver or GeometryResolver(self.rng),
        )
        self.planner = planner or DeploymentPlanner()

    def analyze(self, mode: str, now: Optional[datetime] = None) -> AnalysisResult:
        mode = normalize_mode(mode)
        now = now or datetime.now(timezone.utc)
        try:
            zones = self.builder.analyze(mode)
            data_sources = data_sources_for(mode)
            return AnalysisResult(
                mode=mode,
                zones=zones,
                summary=summarize_zones(zones, mode),
                agent_messages=generate_agent_messages(mode, zones, data_sources, now=now),
                data_sources=data_sources,
                timestamp=now,
            )
        except Exception:
            logger.exception(f"[system] {mode} analysis failed, returning degraded result")
            return AnalysisResult(
                mode=mode,
                zones=[],
                summary=RiskSummary(total_zones=0, high_risk=0, medium_risk=0, low_risk=0),
                agent_messages=[failure_message(now)],
                data_sources=[],
                timestamp=now,
            )

    def weather(self, mode: str) -> WeatherData:
        return self.weather_source.weather(normalize_mode(mode), rng=self.rng)

    def weather_condition(self, mode: str) -> WeatherCondition:
        return weather_condition(self.weather(mode))

    def vehicles(self, mode: str) -> List[Vehicle]:
        return mock_vehicles(normalize_mode(mode))

    def resources(self, mode: str) -> List[ResourceSummary]:
        return mock_resources(normalize_mode(mode))

    def brief(self, mode: str) -> Briefing:
        result = self.analyze(mode)
        return generate_briefing(result.mode, result.zones, self.weather(result.mode))

    def alert(self, mode: str) -> EmergencyAlert:
        result = self.analyze(mode)
        return generate_emergency_alert(result.mode, result.zones, self.weather(result.mode))

    def report(self, mode: str) -> SituationReport:
        result = self.analyze(mode)
        return generate_situation_report(
            result.mode, result.zones, self.weather(result.mode), self.resources(result.mode)
        )

    def plan_deployment(self, mode: str) -> DeploymentPlan:
        result = self.analyze(mode)
        return self.planner.plan(result.zones, self.vehicles(result.mode), result.mode)
