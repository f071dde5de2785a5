"""Stand-in fleet data: per-mode vehicles and resource inventories."""
from __future__ import annotations

from types import MappingProxyType
from typing import List

from climate_ops.models import Coordinates, ResourceSummary, Vehicle

MODE_VEHICLE_TYPE = MappingProxyType(
    {
        "winter": "snowplow",
        "summer": "water-pump",
        "landslide": "excavator",
        "heat": "mobile-shelter",
    }
)

VEHICLE_LABELS = MappingProxyType(
    {
        "snowplow": "Snowplow",
        "water-pump": "Water pump truck",
        "excavator": "Excavator",
        "mobile-shelter": "Mobile shelter",
        "ambulance": "Ambulance",
        "fire-truck": "Fire truck",
    }
)

# average road speed in km/h
VEHICLE_SPEEDS_KMH = MappingProxyType(
    {
        "snowplow": 30.0,
        "water-pump": 45.0,
        "excavator": 35.0,
        "mobile-shelter": 45.0,
        "ambulance": 60.0,
        "fire-truck": 55.0,
    }
)
DEFAULT_SPEED_KMH = 40.0

# Suwon, Seongnam, Gwacheon, Bucheon, Ansan depots
BASE_LOCATIONS = (
    (37.2636, 127.0286),
    (37.3595, 127.1086),
    (37.4292, 126.9876),
    (37.5034, 126.7660),
    (37.3180, 126.8309),
)

# (type, total, available, deployed, maintenance)
MODE_RESOURCES = MappingProxyType(
    {
        "winter": (("snowplow", 15, 8, 5, 2), ("ambulance", 10, 7, 2, 1)),
        "summer": (("water-pump", 12, 6, 4, 2), ("ambulance", 10, 6, 3, 1), ("fire-truck", 8, 5, 2, 1)),
        "landslide": (("excavator", 8, 4, 3, 1), ("ambulance", 10, 5, 4, 1), ("fire-truck", 8, 4, 3, 1)),
        "heat": (("mobile-shelter", 10, 5, 4, 1), ("ambulance", 10, 6, 3, 1)),
    }
)


def speed_for(vehicle_type: str) -> float:
    return VEHICLE_SPEEDS_KMH.get(vehicle_type, DEFAULT_SPEED_KMH)


def _status_for_index(idx: int) -> str:
    if idx < 2:
        return "idle"
    if idx < 4:
        return "dispatched"
    return "working"


def mock_vehicles(mode: str) -> List[Vehicle]:
    vehicle_type = MODE_VEHICLE_TYPE.get(mode, MODE_VEHICLE_TYPE["winter"])
    label = VEHICLE_LABELS[vehicle_type]
    vehicles = []
    for idx, (lat, lng) in enumerate(BASE_LOCATIONS):
        status = _status_for_index(idx)
        vehicles.append(
            Vehicle(
                id=f"{vehicle_type}-{idx + 1:02d}",
                type=vehicle_type,
                name=f"{label} #{idx + 1}",
                status=status,
                location=Coordinates(lat, lng),
                eta=10 + idx * 5 if status == "dispatched" else None,
                driver=f"Crew {idx + 1}",
            )
        )
    return vehicles


def mock_resources(mode: str) -> List[ResourceSummary]:
    rows = MODE_RESOURCES.get(mode, MODE_RESOURCES["winter"])
    return [ResourceSummary(*row) for row in rows]
