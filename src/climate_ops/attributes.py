"""Tolerant reads from feature attribute bags.

The WFS layers are inconsistent about key casing (``grid_code`` vs
``GRID_CODE``), so every read goes through these helpers: candidate keys are
tried lowercase first, then uppercase, and the first usable value wins.
"""
from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional


def candidate_keys(keys: Iterable[str]) -> List[str]:
    out: List[str] = []
    for key in keys:
        for variant in (key.lower(), key.upper()):
            if variant not in out:
                out.append(variant)
    return out


def lookup(properties: Optional[Mapping[str, Any]], *keys: str, default: Any = None) -> Any:
    if not properties:
        return default
    for key in candidate_keys(keys):
        value = properties.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return default


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def lookup_float(properties: Optional[Mapping[str, Any]], *keys: str, default: float = 0.0) -> float:
    if not properties:
        return default
    for key in candidate_keys(keys):
        number = to_float(properties.get(key))
        if number is not None:
            return number
    return default


def lookup_str(properties: Optional[Mapping[str, Any]], *keys: str, default: str = "") -> str:
    value = lookup(properties, *keys)
    if value is None:
        return default
    return str(value).strip() or default
