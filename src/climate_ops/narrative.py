"""Templated operational narratives: agent log, briefings, alerts and situation reports.

Everything here is a fixed template filled in from zone counts, zone names
and weather readings. Given the same inputs the text is identical; only ids
and timestamps depend on the clock.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Dict, List, Optional, Sequence

from climate_ops.models import (
    AgentMessage,
    Briefing,
    EmergencyAlert,
    Forecast,
    KeyMetrics,
    Recommendation,
    ResourceSummary,
    RiskPrediction,
    RiskZone,
    SituationReport,
    WeatherData,
)
from climate_ops.scoring import HIGH_RISK_THRESHOLD, MEDIUM_RISK_THRESHOLD
from climate_ops.zones import HEAT_SHELTER

MODE_INFO = MappingProxyType(
    {
        "winter": MappingProxyType({"label": "Winter", "hazard": "icing", "vehicle": "snowplow"}),
        "summer": MappingProxyType({"label": "Summer", "hazard": "flooding", "vehicle": "water-pump"}),
        "landslide": MappingProxyType({"label": "Landslide", "hazard": "landslide", "vehicle": "excavator"}),
        "heat": MappingProxyType({"label": "Heatwave", "hazard": "heatwave", "vehicle": "mobile-shelter"}),
    }
)

WEATHER_MESSAGES = MappingProxyType(
    {
        "winter": "[Weather] Temperature below freezing. Icing conditions met. Focusing on steep shaded sections.",
        "summer": "[Weather] Extreme rainfall of 50-100mm per hour expected. Analyzing flood-prone areas.",
        "landslide": "[Terrain] Heavy rain warning in effect. Monitoring landslide grade-1 zones closely.",
        "heat": "[Weather] Heatwave warning issued. Feels-like temperature above 35C. Vulnerable residents need evacuation support.",
    }
)

DISPATCH_MESSAGES = MappingProxyType(
    {
        "winter": "[Dispatch] Pre-position {count} snowplows. Top priority: {zone}",
        "summer": "[Dispatch] Forward-deploy {count} water pumps. Top priority: {zone}",
        "landslide": "[Dispatch] Put {count} excavator and rescue teams on standby. Watch: {zone}",
        "heat": "[Dispatch] Deploy {count} mobile shelters and step up patrols for vulnerable residents. Focus: {zone}",
    }
)

DISPATCH_CAPS = MappingProxyType({"winter": 5, "summer": 5, "landslide": 3, "heat": 5})

SITUATION_NORMAL_MESSAGE = "[All clear] No high-risk zones at present. Routine monitoring continues."

SITUATION_SUMMARIES = MappingProxyType(
    {
        "winter": (
            "Current temperature {temperature}C, feels like {feels_like}C: icing conditions are met. "
            "Black-ice risk detected in {total} sections across Gyeonggi, {critical} of them high-risk and "
            "needing immediate action. Snowfall of {precipitation}mm per hour may worsen road conditions."
        ),
        "summer": (
            "Rain is falling at {precipitation}mm per hour and flood risk was detected in {total} sections "
            "across Gyeonggi. Water pumps are urgently needed at {critical} high-risk sections. Rainfall "
            "intensity is expected to increase over the next 2-3 hours."
        ),
        "landslide": (
            "Heavy rain has produced landslide warning signs at {total} mountain sites in Gyeonggi. "
            "Emergency evacuation is needed for {critical} grade-1 risk zones. Soil saturation is nearing its "
            "threshold and further rain ({precipitation}mm per hour now) could sharply raise collapse risk."
        ),
        "heat": (
            "Current temperature {temperature}C, feels like {feels_like}C: heatwave warning level. "
            "Heat-illness risk is high in {total} climate-vulnerable areas, and {critical} of them with "
            "concentrations of elderly residents living alone need urgent patrols. {shelters} cooling "
            "shelters are available."
        ),
    }
)

RISK_PATTERNS = MappingProxyType(
    {
        "winter": (0, 5, 10, 15, 12, 8, 5),
        "summer": (0, 8, 15, 20, 18, 10, 5),
        "landslide": (0, 10, 20, 25, 22, 15, 10),
        "heat": (0, 5, 10, 15, 18, 15, 10),
    }
)

DEFAULT_CURRENT_RISK = 30.0
TREND_MARGIN = 10

FORECASTS = MappingProxyType(
    {
        "winter": (
            "Next 1-2 hours: temperatures keep falling and icing zones expand. Act early on main roads.",
            "Next 3-6 hours: overnight low reached, icing risk peaks. Rush-hour congestion expected.",
        ),
        "summer": (
            "Next 1-2 hours: rainfall intensifies and low-lying areas start to flood. Prepare pumps.",
            "Next 3-6 hours: rainfall peaks then eases. Keep traffic controls until drainage completes.",
        ),
        "landslide": (
            "Next 1-2 hours: soil saturation reaches its threshold. Complete evacuation of risk zones.",
            "Next 3-6 hours: further rain may trigger small collapses. Intensify monitoring.",
        ),
        "heat": (
            "Next 1-2 hours: daily maximum reached, heat-illness risk peaks. Advise against outdoor activity.",
            "Next 3-6 hours: temperatures drop after sunset, tropical night likely. Keep night patrols.",
        ),
    }
)

SPECIAL_RECOMMENDATIONS = MappingProxyType(
    {
        "winter": Recommendation(
            id="REC-004",
            priority="medium",
            action="Expand calcium chloride spreading points",
            reason="Falling temperatures are expected to widen icing zones",
            estimated_impact="Icing accident prevention up 25%",
        ),
        "summer": Recommendation(
            id="REC-004",
            priority="medium",
            action="Prepare underpass closures",
            reason="Rainfall intensity rising, underpass flooding risk",
            estimated_impact="Prevents vehicles being trapped",
        ),
        "landslide": Recommendation(
            id="REC-004",
            priority="critical",
            action="Advise pre-emptive evacuation of residents in risk zones",
            reason="Soil saturation expected to reach threshold",
            estimated_impact="Minimizes casualties",
        ),
        "heat": Recommendation(
            id="REC-004",
            priority="high",
            action="Urgent patrols of elderly residents living alone",
            reason="Heatstroke-vulnerable residents need focused care",
            estimated_impact="Heat-illness fatalities down 60%",
        ),
    }
)

ALERT_TEMPLATES = MappingProxyType(
    {
        "winter": (
            "[Urgent] Icing warning",
            "A black-ice warning is in effect for {areas}. Current temperature {temperature}C, road icing expected.",
            ("Avoid sudden braking and acceleration", "Double your following distance", "Use public transport", "Avoid unnecessary travel"),
        ),
        "summer": (
            "[Urgent] Flood warning",
            "A flood warning is in effect for {areas}. Downpours of {precipitation}mm per hour or more are expected.",
            ("Do not enter low-lying areas or underpasses", "Stay away from rivers", "Leave vehicles if flooding starts", "Move to higher ground"),
        ),
        "landslide": (
            "[Urgent] Landslide risk",
            "A landslide warning is in effect for {areas}. Residents near mountain slopes should evacuate immediately.",
            ("Stay away from slopes and valleys", "Move to a shelter immediately", "Call 119 if you notice warning signs", "Check your evacuation route"),
        ),
        "heat": (
            "[Urgent] Heatwave warning",
            "A heatwave warning is in effect across Gyeonggi. Current temperature {temperature}C, feels like {feels_like}C.",
            ("Avoid outdoor activity (11:00-17:00)", "Drink plenty of water", "Use cooling shelters", "Check on elderly neighbours living alone"),
        ),
    }
)

ALERT_CHANNELS = ("CBS", "SMS")
ALERT_CONTACT = "Gyeonggi Disaster and Safety Countermeasures HQ 031-120"
EMERGENCY_ALERT_MIN_CRITICAL = 3

AFFECTED_POPULATION_PER_CRITICAL_ZONE = 15000
DEPLOYED_RESOURCE_PERCENT = 60


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _stamp(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def critical_zones(zones: Sequence[RiskZone]) -> List[RiskZone]:
    """Zones at or above the high-risk threshold, highest score first (stable on ties)."""
    high = [z for z in zones if z.risk_score >= HIGH_RISK_THRESHOLD]
    return sorted(high, key=lambda z: z.risk_score, reverse=True)


def medium_zones(zones: Sequence[RiskZone]) -> List[RiskZone]:
    return [z for z in zones if MEDIUM_RISK_THRESHOLD <= z.risk_score < HIGH_RISK_THRESHOLD]


def zone_region(zone: RiskZone) -> str:
    region = zone.details.get("sgg_nm") if zone.details else None
    return str(region).strip() if region else "Gyeonggi"


def unique_regions(zones: Sequence[RiskZone]) -> List[str]:
    regions: List[str] = []
    for zone in zones:
        region = zone_region(zone)
        if region not in regions:
            regions.append(region)
    return regions


def truncate(text: str, limit: int = 50) -> str:
    return f"{text[:limit]}..."


# --- agent log ---


def generate_agent_messages(
    mode: str,
    zones: Sequence[RiskZone],
    data_sources: Sequence[str],
    now: Optional[datetime] = None,
) -> List[AgentMessage]:
    now = _now(now)
    stamp = _stamp(now)
    label = MODE_INFO[mode]["label"]
    high = critical_zones(zones)
    medium = medium_zones(zones)

    def at(offset_ms: int) -> datetime:
        return now - timedelta(milliseconds=offset_ms)

    sources = ", ".join(data_sources[:3])
    if len(data_sources) > 3:
        sources += f" +{len(data_sources) - 3} more"

    messages = [
        AgentMessage(
            f"msg-{stamp}-1",
            at(6000),
            f"[System] Gyeonggi Climate Platform API connected. Starting {label} Mode analysis.",
            "info",
        ),
        AgentMessage(f"msg-{stamp}-2", at(5000), f"[Data] Queried {len(data_sources)} layers: {sources}", "data"),
        AgentMessage(f"msg-{stamp}-3", at(4000), WEATHER_MESSAGES[mode], "alert"),
    ]

    for idx, zone in enumerate(high[:3]):
        messages.append(
            AgentMessage(
                f"msg-{stamp}-zone-{idx}",
                at(3000 - idx * 500),
                f"[Risk] {zone.name} - {truncate(zone.reason)} risk {zone.risk_score}%",
                "alert",
            )
        )

    if high:
        messages.append(
            AgentMessage(
                f"msg-{stamp}-summary",
                at(1000),
                f"[Analysis] {len(zones)} zones analyzed. {len(high)} high-risk, {len(medium)} watch.",
                "info",
            )
        )
        count = min(len(high), DISPATCH_CAPS[mode])
        messages.append(
            AgentMessage(f"msg-{stamp}-action", now, DISPATCH_MESSAGES[mode].format(count=count, zone=high[0].name), "action")
        )
    else:
        messages.append(AgentMessage(f"msg-{stamp}-safe", now, SITUATION_NORMAL_MESSAGE, "success"))

    return messages


def failure_message(now: Optional[datetime] = None) -> AgentMessage:
    now = _now(now)
    return AgentMessage(f"msg-error-{_stamp(now)}", now, "[System] Data retrieval failed. Retrying...", "alert")


# --- briefing ---


def generate_situation_summary(mode: str, zones: Sequence[RiskZone], weather: WeatherData) -> str:
    current = weather.current
    return SITUATION_SUMMARIES[mode].format(
        temperature=current.temperature,
        feels_like=current.feels_like,
        precipitation=current.precipitation,
        total=len(zones),
        critical=len(critical_zones(zones)),
        shelters=sum(1 for z in zones if z.source_layer == HEAT_SHELTER),
    )


def generate_recommendations(mode: str, zones: Sequence[RiskZone]) -> List[Recommendation]:
    vehicle = MODE_INFO[mode]["vehicle"]
    high = critical_zones(zones)
    recommendations = []

    if high:
        top = high[0]
        recommendations.append(
            Recommendation(
                id="REC-001",
                priority="critical",
                action=f"Deploy {vehicle} to {top.name} immediately",
                reason=f"Risk {top.risk_score}% requires top-priority response. {top.reason}",
                estimated_impact="Zone risk expected to drop 30%",
                target_zone=top.id,
                resource_type=vehicle,
                resource_count=2,
            )
        )

    if len(high) > 1:
        recommendations.append(
            Recommendation(
                id="REC-002",
                priority="high",
                action=f"Stage deployments across {len(high)} high-risk zones",
                reason=f"{len(high)} zones are at 80% risk or above. Prepare for simultaneous incidents",
                estimated_impact="Response time to all high-risk zones down 40%",
                resource_type=vehicle,
                resource_count=min(len(high), 5),
            )
        )

    recommendations.append(
        Recommendation(
            id="REC-003",
            priority="high",
            action="Send emergency disaster text",
            reason=f"Residents of {len(high)} high-risk zones need advance warning",
            estimated_impact="Expected casualties down 50%",
        )
    )

    recommendations.append(SPECIAL_RECOMMENDATIONS[mode])
    return recommendations


def _prediction_factors(mode: str, hour: int, weather: WeatherData) -> List[str]:
    precipitation = weather.current.precipitation
    factors = []
    if mode == "winter":
        if hour >= 2:
            factors.append("overnight temperature drop")
        if precipitation > 0:
            factors.append("continued snowfall")
    elif mode == "summer":
        if precipitation > 30:
            factors.append("rising rainfall intensity")
        factors.append("drainage capacity limit")
    elif mode == "landslide":
        factors.append("accumulating rainfall")
        if hour >= 3:
            factors.append("soil saturation")
    else:
        if 2 <= hour <= 4:
            factors.append("peak solar radiation")
        factors.append("urban heat island")
    return factors


def current_risk_level(zones: Sequence[RiskZone]) -> float:
    if not zones:
        return DEFAULT_CURRENT_RISK
    return sum(z.risk_score for z in zones) / len(zones)


def project_risk_levels(mode: str, zones: Sequence[RiskZone], weather: WeatherData) -> List[RiskPrediction]:
    current = current_risk_level(zones)
    return [
        RiskPrediction(hour=hour, risk_level=round(min(100.0, current + delta), 1), factors=_prediction_factors(mode, hour, weather))
        for hour, delta in enumerate(RISK_PATTERNS[mode])
    ]


def classify_trend(levels: Sequence[float]) -> str:
    if not levels:
        return "stable"
    current = levels[0]
    peak = max(levels)
    if peak > current + TREND_MARGIN:
        return "worsening"
    if peak < current - TREND_MARGIN:
        return "improving"
    return "stable"


def generate_forecast(mode: str, predictions: Sequence[RiskPrediction]) -> Forecast:
    short_term, mid_term = FORECASTS[mode]
    return Forecast(short_term=short_term, mid_term=mid_term, trend=classify_trend([p.risk_level for p in predictions]))


def generate_briefing(
    mode: str,
    zones: Sequence[RiskZone],
    weather: WeatherData,
    now: Optional[datetime] = None,
) -> Briefing:
    now = _now(now)
    high = critical_zones(zones)
    predictions = project_risk_levels(mode, zones, weather)
    return Briefing(
        id=f"BRIEF-{_stamp(now)}",
        timestamp=now,
        mode=mode,
        situation_summary=generate_situation_summary(mode, zones, weather),
        key_metrics=KeyMetrics(
            total_risk_zones=len(zones),
            critical_zones=len(high),
            deployed_resources=len(zones) * DEPLOYED_RESOURCE_PERCENT // 100,
            estimated_affected_population=len(high) * AFFECTED_POPULATION_PER_CRITICAL_ZONE,
        ),
        recommendations=generate_recommendations(mode, zones),
        forecast=generate_forecast(mode, predictions),
        risk_prediction=predictions,
    )


# --- alerts and reports ---


def generate_emergency_alert(
    mode: str,
    zones: Sequence[RiskZone],
    weather: WeatherData,
    now: Optional[datetime] = None,
) -> EmergencyAlert:
    now = _now(now)
    high = critical_zones(zones)
    top = high[:3]
    areas = ", ".join(unique_regions(top)) or "Gyeonggi"
    title, content, actions = ALERT_TEMPLATES[mode]
    return EmergencyAlert(
        id=f"ALERT-{_stamp(now)}",
        type="emergency-disaster-text" if len(high) >= EMERGENCY_ALERT_MIN_CRITICAL else "safety-guidance-text",
        channels=list(ALERT_CHANNELS),
        target_area=areas,
        title=title,
        content=content.format(
            areas=areas,
            temperature=weather.current.temperature,
            feels_like=weather.current.feels_like,
            precipitation=weather.current.precipitation,
        ),
        action_items=list(actions),
        contact_info=ALERT_CONTACT,
        timestamp=now,
        based_on_zones=[z.id for z in top],
    )


def _response_level(critical_count: int) -> str:
    if critical_count > 3:
        return "emergency-level-3"
    if critical_count > 0:
        return "emergency-level-2"
    return "watch"


def generate_situation_report(
    mode: str,
    zones: Sequence[RiskZone],
    weather: WeatherData,
    resources: Sequence[ResourceSummary],
    now: Optional[datetime] = None,
) -> SituationReport:
    now = _now(now)
    info: Dict[str, str] = MODE_INFO[mode]
    high = critical_zones(zones)
    deployed = sum(r.deployed for r in resources)
    lead_deployed = resources[0].deployed if resources else 0

    summary = (
        f"As of {now:%Y-%m-%d %H:%M} UTC, {len(zones)} {info['hazard']} risk zones have been detected in "
        f"Gyeonggi, {len(high)} of them high-risk. {deployed} units are deployed and responding. "
        f"Current temperature {weather.current.temperature}C, precipitation {weather.current.precipitation}mm."
    )

    return SituationReport(
        id=f"RPT-{_stamp(now)}",
        title=f"{info['label']} response situation report",
        report_type="situation",
        created_at=now,
        mode=mode,
        executive_summary=summary,
        start_time=now - timedelta(hours=3),
        current_status=_response_level(len(high)),
        affected_areas=unique_regions(zones),
        estimated_damage="under assessment" if high else "none",
        deployed_resources=list(resources),
        completed_actions=[
            "Disaster and safety countermeasures HQ activated",
            "Situation shared with partner agencies",
            "Initial response team dispatched",
        ],
        ongoing_actions=[
            f"{info['vehicle']} units on site ({lead_deployed})",
            "Monitoring risk zones",
            "Guiding resident evacuation",
        ],
        planned_actions=[
            "Review additional resource mobilization",
            "Draw up recovery plan",
            "Normalization procedure once the situation ends",
        ],
        casualties=0,
        displaced=0,
        property_damage="being tallied",
        recommendations=[
            f"Concentrate response on {len(high)} high-risk zones",
            "Secure and stage reserve resources",
            "Confirm resident evacuation is complete",
            "Maintain coordination with partner agencies",
        ],
    )
