"""Upstream sources: the Gyeonggi Climate Platform WFS client, an in-memory
stand-in for it, and the KMA weather client."""
from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from climate_ops.config import (
    GG_CLIMATE_API_KEY,
    HTTP_RETRY_TOTAL,
    HTTP_TIMEOUT,
    KMA_API_KEY,
    KMA_BASE_URL,
    KMA_GRID_NX,
    KMA_GRID_NY,
    KMA_STATION_ID,
    WFS_BASE_URL,
)
from climate_ops.logging_setup import logger
from climate_ops.models import CurrentWeather, WeatherAlert, WeatherData
from climate_ops.weather import LOCATION, mock_weather


class FeatureSourceError(RuntimeError):
    """A layer could not be fetched or decoded."""


class WeatherSourceError(RuntimeError):
    """Live weather could not be fetched or decoded."""


@dataclass(frozen=True)
class Feature:
    id: Optional[str]
    geometry: Optional[Dict[str, Any]]
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FeatureCollection:
    features: List[Feature]
    total_count: int = 0


def parse_feature_collection(payload: Any) -> FeatureCollection:
    if not isinstance(payload, Mapping):
        raise FeatureSourceError("feature collection must be a JSON object")

    features: List[Feature] = []
    for raw in payload.get("features") or []:
        if not isinstance(raw, Mapping):
            continue
        fid = raw.get("id")
        geometry = raw.get("geometry")
        properties = raw.get("properties")
        features.append(
            Feature(
                id=str(fid) if fid not in (None, "") else None,
                geometry=dict(geometry) if isinstance(geometry, Mapping) else None,
                properties=dict(properties) if isinstance(properties, Mapping) else {},
            )
        )

    total = payload.get("totalFeatures", payload.get("totalCount", payload.get("numberMatched")))
    try:
        total_count = int(total)
    except (TypeError, ValueError):
        total_count = len(features)
    return FeatureCollection(features=features, total_count=total_count)


class FeatureSource(Protocol):
    def fetch(self, layer: str, max_features: int = 100) -> FeatureCollection:
        ...


class StaticFeatureSource:
    """Serves pre-loaded layers; a layer mapped to an exception raises it on fetch."""

    def __init__(self, layers: Optional[Mapping[str, Any]] = None) -> None:
        self.layers: Dict[str, Any] = dict(layers or {})

    def fetch(self, layer: str, max_features: int = 100) -> FeatureCollection:
        data = self.layers.get(layer)
        if isinstance(data, BaseException):
            raise data
        if data is None:
            return FeatureCollection(features=[], total_count=0)
        if isinstance(data, FeatureCollection):
            collection = data
        elif isinstance(data, Mapping):
            collection = parse_feature_collection(data)
        else:
            collection = parse_feature_collection({"features": list(data)})
        return FeatureCollection(features=collection.features[:max_features], total_count=collection.total_count)


def build_session(retry_total: int = HTTP_RETRY_TOTAL) -> requests.Session:
    session = requests.Session()
    retries = Retry(
        total=retry_total,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET"]),
    )
    session.headers.update({"User-Agent": "climate-ops/1.0"})
    session.mount("http://", HTTPAdapter(max_retries=retries))
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


def _thread_session(client: Any) -> requests.Session:
    """The client's injected session, else one session per calling thread."""
    if client._session is not None:
        return client._session
    session = getattr(client._local, "session", None)
    if session is None:
        session = client._local.session = build_session()
    return session


class WFSFeatureSource:
    def __init__(
        self,
        base_url: str = WFS_BASE_URL,
        api_key: str = GG_CLIMATE_API_KEY,
        timeout: float = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self._session = session
        self._local = threading.local()

    session = property(_thread_session)

    def build_params(self, layer: str, max_features: int, cql_filter: Optional[str] = None) -> Dict[str, str]:
        params = {
            "apiKey": self.api_key,
            "service": "WFS",
            "version": "1.1.0",
            "request": "GetFeature",
            "typeName": layer,
            "outputFormat": "application/json",
            "maxFeatures": str(max_features),
            "srsName": "EPSG:4326",
        }
        if cql_filter:
            params["CQL_FILTER"] = cql_filter
        return params

    def fetch(self, layer: str, max_features: int = 100, cql_filter: Optional[str] = None) -> FeatureCollection:
        params = self.build_params(layer, max_features, cql_filter)
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise FeatureSourceError(f"{layer}: request failed: {exc}") from exc
        except ValueError as exc:
            raise FeatureSourceError(f"{layer}: invalid JSON: {exc}") from exc

        collection = parse_feature_collection(payload)
        logger.debug(f"[sources] {layer}: {len(collection.features)} features (total {collection.total_count})")
        return collection


KST = timezone(timedelta(hours=9))

# KMA precipitation type codes (PTY) for nowcasts
PRECIPITATION_TYPES = {
    "0": "none",
    "1": "rain",
    "2": "rain/snow",
    "3": "snow",
    "4": "shower",
    "5": "rain",
    "6": "rain/snow",
    "7": "snow",
}

COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def _kst(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(KST)
    if now.tzinfo is None:
        return now
    return now.astimezone(KST)


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def compass_direction(degrees: float) -> str:
    return COMPASS_POINTS[int((degrees % 360) / 45 + 0.5) % 8]


def _kma_items(payload: Any) -> List[Mapping[str, Any]]:
    """Unwrap ``response.body.items.item`` from a data.go.kr JSON envelope."""
    if not isinstance(payload, Mapping):
        raise WeatherSourceError("response must be a JSON object")
    response = payload.get("response") or {}
    header = response.get("header") or {}
    code = str(header.get("resultCode", "00"))
    if code == "03":
        # NO_DATA
        return []
    if code != "00":
        raise WeatherSourceError(f"KMA error {code}: {header.get('resultMsg', '')}")
    items = ((response.get("body") or {}).get("items") or {}).get("item") or []
    if isinstance(items, Mapping):
        items = [items]
    return [item for item in items if isinstance(item, Mapping)]


def parse_observation(items: List[Mapping[str, Any]]) -> CurrentWeather:
    values = {str(item.get("category")): item.get("obsrValue") for item in items}
    if "T1H" not in values:
        raise WeatherSourceError("observation has no temperature (T1H)")
    temperature = _to_float(values["T1H"])
    return CurrentWeather(
        temperature=temperature,
        feels_like=temperature,
        humidity=_to_float(values.get("REH")),
        precipitation=_to_float(values.get("RN1")),
        precipitation_type=PRECIPITATION_TYPES.get(str(values.get("PTY", "0")), "none"),
        wind_speed=_to_float(values.get("WSD")),
        wind_direction=compass_direction(_to_float(values.get("VEC"), 315.0)),
    )


def parse_warning(item: Mapping[str, Any]) -> WeatherAlert:
    title = str(item.get("title") or "").strip()
    severity = "warning" if "경보" in title or "warning" in title.lower() else "watch"
    return WeatherAlert(
        type=title,
        severity=severity,
        title=title,
        description=f"Issued {item.get('tmFc', '')}".strip(),
    )


class KMAWeatherSource:
    """Live conditions from the KMA ultra-short-term nowcast plus active warnings.

    Without an API key, or when the nowcast cannot be read, it serves the
    per-mode stand-in weather instead.
    """

    def __init__(
        self,
        base_url: str = KMA_BASE_URL,
        api_key: str = KMA_API_KEY,
        timeout: float = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
        nx: int = KMA_GRID_NX,
        ny: int = KMA_GRID_NY,
        station_id: str = KMA_STATION_ID,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session = session
        self._local = threading.local()
        self.nx = nx
        self.ny = ny
        self.station_id = station_id

    session = property(_thread_session)

    def build_observation_params(self, now: Optional[datetime] = None) -> Dict[str, str]:
        observed = _kst(now)
        # the hourly nowcast is published around HH:40
        if observed.minute < 30:
            observed -= timedelta(hours=1)
        return {
            "serviceKey": self.api_key,
            "numOfRows": "10",
            "pageNo": "1",
            "dataType": "JSON",
            "base_date": observed.strftime("%Y%m%d"),
            "base_time": observed.strftime("%H00"),
            "nx": str(self.nx),
            "ny": str(self.ny),
        }

    def build_warning_params(self, now: Optional[datetime] = None) -> Dict[str, str]:
        today = _kst(now).strftime("%Y%m%d")
        return {
            "serviceKey": self.api_key,
            "numOfRows": "10",
            "pageNo": "1",
            "dataType": "JSON",
            "stnId": self.station_id,
            "fromTmFc": today,
            "toTmFc": today,
        }

    def _get(self, path: str, params: Dict[str, str]) -> List[Mapping[str, Any]]:
        try:
            response = self.session.get(f"{self.base_url}/{path}", params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise WeatherSourceError(f"{path}: request failed: {exc}") from exc
        except ValueError as exc:
            raise WeatherSourceError(f"{path}: invalid JSON: {exc}") from exc
        return _kma_items(payload)

    def fetch_current(self, now: Optional[datetime] = None) -> CurrentWeather:
        items = self._get("VilageFcstInfoService_2.0/getUltraSrtNcst", self.build_observation_params(now))
        return parse_observation(items)

    def fetch_alerts(self, now: Optional[datetime] = None) -> List[WeatherAlert]:
        try:
            items = self._get("WthrWrnInfoService/getWthrWrnList", self.build_warning_params(now))
        except WeatherSourceError as exc:
            logger.warning(f"[weather] warning list unavailable: {exc}")
            return []
        return [parse_warning(item) for item in items if item.get("title")]

    def weather(self, mode: str, rng: Optional[random.Random] = None, now: Optional[datetime] = None) -> WeatherData:
        if not self.api_key:
            logger.debug(f"[weather] no KMA API key, using stand-in {mode} weather")
            return mock_weather(mode, rng=rng, now=now)
        try:
            current = self.fetch_current(now)
        except WeatherSourceError as exc:
            logger.warning(f"[weather] live weather unavailable, using stand-in {mode} weather: {exc}")
            return mock_weather(mode, rng=rng, now=now)
        return WeatherData(
            timestamp=now or datetime.now(timezone.utc),
            location=LOCATION,
            current=current,
            alerts=self.fetch_alerts(now),
        )
