"""Stand-in weather conditions per mode and the weather-driven mode recommendation."""
from __future__ import annotations

import random
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, List, Optional, Sequence

from climate_ops.models import (
    CurrentWeather,
    HourlyForecast,
    ModeAssessment,
    WeatherAlert,
    WeatherCondition,
    WeatherData,
)

LOCATION = "Gyeonggi"

# temperature, feels_like, humidity, precipitation, precipitation_type, wind_speed
MODE_WEATHER = MappingProxyType(
    {
        "winter": (-3.0, -8.0, 45.0, 2.0, "snow", 12.0),
        "summer": (28.0, 32.0, 85.0, 45.0, "rain", 8.0),
        "landslide": (22.0, 24.0, 90.0, 60.0, "rain", 15.0),
        "heat": (36.0, 42.0, 70.0, 0.0, "none", 3.0),
    }
)

MODE_LABELS = MappingProxyType({"winter": "Winter", "summer": "Summer", "landslide": "Landslide", "heat": "Heatwave"})

FORECAST_HOURS = 7

# precedence when several modes are active
MODE_PRIORITY = ("landslide", "summer", "heat", "winter")

ICING_TEMPERATURE = 3.0
FREEZING_TEMPERATURE = 0.0
RAIN_RATE_MM = 10.0
DOWNPOUR_RATE_MM = 30.0
LANDSLIDE_RAIN_RATE_MM = 20.0
HEAT_TEMPERATURE = 33.0
EXTREME_HEAT_TEMPERATURE = 35.0

SNOW_TYPES = ("snow", "rain/snow")
RAIN_TYPES = ("rain", "shower")


def _hourly_forecast(mode: str, current: CurrentWeather, rng: random.Random) -> List[HourlyForecast]:
    condition = {"winter": "snow", "heat": "clear"}.get(mode, "rain")
    hours = []
    for hour in range(FORECAST_HOURS):
        if mode == "heat":
            delta = hour * 0.5
        elif mode == "winter":
            delta = -hour * 0.3
        else:
            delta = 0.0
        hours.append(
            HourlyForecast(
                hour=hour,
                temperature=round(current.temperature + delta, 1),
                precipitation=round(max(0.0, current.precipitation + (rng.random() - 0.3) * 20), 1),
                precipitation_probability=10.0 if mode == "heat" else round(70 + rng.random() * 20, 1),
                wind_speed=round(current.wind_speed + rng.random() * 5, 1),
                condition=condition,
            )
        )
    return hours


def _mode_alerts(mode: str) -> List[WeatherAlert]:
    if mode == "heat":
        return [
            WeatherAlert(
                type="heatwave warning",
                severity="emergency",
                title="Heatwave warning issued",
                description="A heatwave warning is in effect across Gyeonggi. Avoid outdoor activity.",
            )
        ]
    label = MODE_LABELS[mode]
    return [
        WeatherAlert(
            type=f"{label.lower()} advisory",
            severity="warning",
            title=f"{label} advisory issued",
            description=f"A {label.lower()} advisory is in effect across Gyeonggi.",
        )
    ]


def mock_weather(mode: str, rng: Optional[random.Random] = None, now: Optional[datetime] = None) -> WeatherData:
    rng = rng or random.Random()
    temperature, feels_like, humidity, precipitation, precipitation_type, wind_speed = MODE_WEATHER[mode]
    current = CurrentWeather(
        temperature=temperature,
        feels_like=feels_like,
        humidity=humidity,
        precipitation=precipitation,
        precipitation_type=precipitation_type,
        wind_speed=wind_speed,
        visibility=500 if mode == "winter" else 10000,
        uv_index=11 if mode == "heat" else 3,
    )
    return WeatherData(
        timestamp=now or datetime.now(timezone.utc),
        location=LOCATION,
        current=current,
        alerts=_mode_alerts(mode),
        hourly_forecast=_hourly_forecast(mode, current, rng),
    )


def _has_alert(alerts: Sequence[WeatherAlert], *keywords: str) -> bool:
    return any(keyword in alert.type.lower() for alert in alerts for keyword in keywords)


def assess_modes(current: CurrentWeather, alerts: Sequence[WeatherAlert] = ()) -> Dict[str, ModeAssessment]:
    temp = current.temperature
    precip = current.precipitation
    precip_type = current.precipitation_type
    reasons: Dict[str, ModeAssessment] = {}

    if temp <= ICING_TEMPERATURE or precip_type in SNOW_TYPES:
        if temp <= FREEZING_TEMPERATURE:
            reason = f"Temperature {temp}C, icing risk. Watch for black ice."
        else:
            reason = f"Temperature {temp}C with {precip_type} expected. Icing possible."
        reasons["winter"] = ModeAssessment(True, reason)
    else:
        reasons["winter"] = ModeAssessment(False, f"Temperature {temp}C, icing conditions not met")

    if precip >= RAIN_RATE_MM or _has_alert(alerts, "heavy rain", "heavy snow", "호우", "대설"):
        if precip >= DOWNPOUR_RATE_MM:
            reason = f"Downpour of {precip}mm per hour. Low-lying areas at flood risk."
        else:
            reason = f"Rain at {precip}mm per hour. Prepare for flooding."
        reasons["summer"] = ModeAssessment(True, reason)
    elif precip_type in RAIN_TYPES:
        reasons["summer"] = ModeAssessment(False, f"Currently {precip_type} at {precip}mm, flood risk low")
    else:
        reasons["summer"] = ModeAssessment(False, "No precipitation, flood conditions not met")

    if _has_alert(alerts, "landslide", "산사태") or precip >= LANDSLIDE_RAIN_RATE_MM:
        reasons["landslide"] = ModeAssessment(True, "Intense rainfall raising landslide risk")
    else:
        reasons["landslide"] = ModeAssessment(False, "Landslide conditions not met")

    if temp >= HEAT_TEMPERATURE or _has_alert(alerts, "heatwave", "폭염"):
        if temp >= EXTREME_HEAT_TEMPERATURE:
            reason = f"Temperature {temp}C, heatwave. Watch for heat illness."
        else:
            reason = f"Temperature {temp}C. Heatwave watch."
        reasons["heat"] = ModeAssessment(True, reason)
    else:
        reasons["heat"] = ModeAssessment(False, f"Temperature {temp}C, heatwave conditions not met")

    return reasons


def recommend_mode(current: CurrentWeather, alerts: Sequence[WeatherAlert] = ()) -> Optional[str]:
    reasons = assess_modes(current, alerts)
    for mode in MODE_PRIORITY:
        if reasons[mode].active:
            return mode
    return None


def weather_condition(weather: WeatherData) -> WeatherCondition:
    return WeatherCondition(
        current=weather.current,
        alerts=list(weather.alerts),
        recommended_mode=recommend_mode(weather.current, weather.alerts),
        mode_reasons=assess_modes(weather.current, weather.alerts),
    )
