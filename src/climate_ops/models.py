from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

MODES = ("winter", "summer", "landslide", "heat")

STATUS_NEEDS_ACTION = "needs-action"
STATUS_IN_PROGRESS = "in-progress"
STATUS_RESOLVED = "resolved"

MESSAGE_TYPES = ("alert", "info", "action", "success", "data")

VEHICLE_STATUSES = ("idle", "dispatched", "working", "returning", "maintenance")

PRIORITIES = ("critical", "high", "medium", "low")


def _iso(value: datetime) -> str:
    return value.isoformat()


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def as_pair(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_list(self) -> List[float]:
        return [self.latitude, self.longitude]


@dataclass(frozen=True)
class RiskZone:
    id: str
    name: str
    coordinates: Coordinates
    risk_score: int
    reason: str
    status: str
    mode: str
    source_layer: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "coordinates": self.coordinates.to_list(),
            "risk_score": self.risk_score,
            "reason": self.reason,
            "status": self.status,
            "mode": self.mode,
            "source_layer": self.source_layer,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class AgentMessage:
    id: str
    timestamp: datetime
    message: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "timestamp": _iso(self.timestamp), "message": self.message, "type": self.type}


@dataclass(frozen=True)
class RiskSummary:
    total_zones: int
    high_risk: int
    medium_risk: int
    low_risk: int
    shelters: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "total_zones": self.total_zones,
            "high_risk": self.high_risk,
            "medium_risk": self.medium_risk,
            "low_risk": self.low_risk,
        }
        if self.shelters is not None:
            data["shelters"] = self.shelters
        return data


@dataclass(frozen=True)
class AnalysisResult:
    mode: str
    zones: List[RiskZone]
    summary: RiskSummary
    agent_messages: List[AgentMessage]
    data_sources: List[str]
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "zones": [zone.to_dict() for zone in self.zones],
            "summary": self.summary.to_dict(),
            "agent_messages": [msg.to_dict() for msg in self.agent_messages],
            "data_sources": list(self.data_sources),
            "timestamp": _iso(self.timestamp),
        }


# --- fleet ---


@dataclass(frozen=True)
class Vehicle:
    id: str
    type: str
    name: str
    status: str
    location: Coordinates
    eta: Optional[int] = None
    assigned_zone: Optional[str] = None
    driver: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "status": self.status,
            "location": self.location.to_list(),
        }
        if self.eta is not None:
            data["eta"] = self.eta
        if self.assigned_zone is not None:
            data["assignedZone"] = self.assigned_zone
        if self.driver is not None:
            data["driver"] = self.driver
        return data


@dataclass(frozen=True)
class ResourceSummary:
    type: str
    total: int
    available: int
    deployed: int
    maintenance: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "total": self.total,
            "available": self.available,
            "deployed": self.deployed,
            "maintenance": self.maintenance,
        }


@dataclass(frozen=True)
class DeploymentSuggestion:
    id: str
    priority: str
    target_zone: RiskZone
    vehicle: Vehicle
    distance: float
    estimated_arrival: int
    reason: str
    alternative_vehicles: List[Vehicle] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority,
            "targetZone": self.target_zone.to_dict(),
            "vehicle": self.vehicle.to_dict(),
            "distance": self.distance,
            "estimatedArrival": self.estimated_arrival,
            "reason": self.reason,
            "alternativeVehicles": [v.to_dict() for v in self.alternative_vehicles],
        }


@dataclass(frozen=True)
class DeploymentSummary:
    critical_zones_count: int = 0
    available_vehicles: int = 0
    avg_response_time: float = 0.0
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criticalZonesCount": self.critical_zones_count,
            "availableVehicles": self.available_vehicles,
            "avgResponseTime": self.avg_response_time,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class DeploymentPlan:
    suggestions: List[DeploymentSuggestion]
    summary: DeploymentSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "summary": self.summary.to_dict(),
        }


# --- weather ---


@dataclass(frozen=True)
class CurrentWeather:
    temperature: float
    feels_like: float
    humidity: float
    precipitation: float
    precipitation_type: str
    wind_speed: float
    wind_direction: str = "NW"
    visibility: int = 10000
    uv_index: int = 3

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "feelsLike": self.feels_like,
            "humidity": self.humidity,
            "precipitation": self.precipitation,
            "precipitationType": self.precipitation_type,
            "windSpeed": self.wind_speed,
            "windDirection": self.wind_direction,
            "visibility": self.visibility,
            "uvIndex": self.uv_index,
        }


@dataclass(frozen=True)
class HourlyForecast:
    hour: int
    temperature: float
    precipitation: float
    precipitation_probability: float
    wind_speed: float
    condition: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hour": self.hour,
            "temperature": self.temperature,
            "precipitation": self.precipitation,
            "precipitationProbability": self.precipitation_probability,
            "windSpeed": self.wind_speed,
            "condition": self.condition,
        }


@dataclass(frozen=True)
class WeatherAlert:
    type: str
    severity: str
    title: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "severity": self.severity, "title": self.title, "description": self.description}


@dataclass(frozen=True)
class WeatherData:
    timestamp: datetime
    location: str
    current: CurrentWeather
    alerts: List[WeatherAlert] = field(default_factory=list)
    hourly_forecast: List[HourlyForecast] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "location": self.location,
            "current": self.current.to_dict(),
            "alerts": [a.to_dict() for a in self.alerts],
            "hourlyForecast": [h.to_dict() for h in self.hourly_forecast],
        }


@dataclass(frozen=True)
class ModeAssessment:
    active: bool
    reason: str


@dataclass(frozen=True)
class WeatherCondition:
    current: CurrentWeather
    alerts: List[WeatherAlert]
    recommended_mode: Optional[str]
    mode_reasons: Dict[str, ModeAssessment]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "alerts": [a.to_dict() for a in self.alerts],
            "recommendedMode": self.recommended_mode,
            "modeReasons": {
                mode: {"active": item.active, "reason": item.reason} for mode, item in self.mode_reasons.items()
            },
        }


# --- briefings, alerts, reports ---


@dataclass(frozen=True)
class Recommendation:
    id: str
    priority: str
    action: str
    reason: str
    estimated_impact: str
    target_zone: Optional[str] = None
    resource_type: Optional[str] = None
    resource_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority,
            "action": self.action,
            "reason": self.reason,
            "targetZone": self.target_zone,
            "resourceType": self.resource_type,
            "resourceCount": self.resource_count,
            "estimatedImpact": self.estimated_impact,
        }


@dataclass(frozen=True)
class RiskPrediction:
    hour: int
    risk_level: float
    factors: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"hour": self.hour, "riskLevel": self.risk_level, "factors": list(self.factors)}


@dataclass(frozen=True)
class Forecast:
    short_term: str
    mid_term: str
    trend: str

    def to_dict(self) -> Dict[str, Any]:
        return {"shortTerm": self.short_term, "midTerm": self.mid_term, "trend": self.trend}


@dataclass(frozen=True)
class KeyMetrics:
    total_risk_zones: int
    critical_zones: int
    deployed_resources: int
    estimated_affected_population: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRiskZones": self.total_risk_zones,
            "criticalZones": self.critical_zones,
            "deployedResources": self.deployed_resources,
            "estimatedAffectedPopulation": self.estimated_affected_population,
        }


@dataclass(frozen=True)
class Briefing:
    id: str
    timestamp: datetime
    mode: str
    situation_summary: str
    key_metrics: KeyMetrics
    recommendations: List[Recommendation]
    forecast: Forecast
    risk_prediction: List[RiskPrediction]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": _iso(self.timestamp),
            "mode": self.mode,
            "situationSummary": self.situation_summary,
            "keyMetrics": self.key_metrics.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "forecast": self.forecast.to_dict(),
            "riskPrediction": [p.to_dict() for p in self.risk_prediction],
        }


@dataclass(frozen=True)
class EmergencyAlert:
    id: str
    type: str
    channels: List[str]
    target_area: str
    title: str
    content: str
    action_items: List[str]
    contact_info: str
    timestamp: datetime
    based_on_zones: List[str]
    status: str = "draft"
    generated_by: str = "AI"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "channels": list(self.channels),
            "targetArea": self.target_area,
            "title": self.title,
            "content": self.content,
            "actionItems": list(self.action_items),
            "contactInfo": self.contact_info,
            "timestamp": _iso(self.timestamp),
            "status": self.status,
            "generatedBy": self.generated_by,
            "basedOnZones": list(self.based_on_zones),
        }


@dataclass(frozen=True)
class SituationReport:
    id: str
    title: str
    report_type: str
    created_at: datetime
    mode: str
    executive_summary: str
    start_time: datetime
    current_status: str
    affected_areas: List[str]
    estimated_damage: str
    deployed_resources: List[ResourceSummary]
    completed_actions: List[str]
    ongoing_actions: List[str]
    planned_actions: List[str]
    casualties: int
    displaced: int
    property_damage: str
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "reportType": self.report_type,
            "createdAt": _iso(self.created_at),
            "mode": self.mode,
            "executiveSummary": self.executive_summary,
            "situationOverview": {
                "startTime": _iso(self.start_time),
                "currentStatus": self.current_status,
                "affectedAreas": list(self.affected_areas),
                "estimatedDamage": self.estimated_damage,
            },
            "responseStatus": {
                "deployedResources": [r.to_dict() for r in self.deployed_resources],
                "completedActions": list(self.completed_actions),
                "ongoingActions": list(self.ongoing_actions),
                "plannedActions": list(self.planned_actions),
            },
            "damageAssessment": {
                "casualties": self.casualties,
                "displaced": self.displaced,
                "propertyDamage": self.property_damage,
            },
            "recommendations": list(self.recommendations),
        }
