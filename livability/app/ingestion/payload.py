"""
payload.py — present/absent field access for loosely-typed upstream JSON.

Every accessor returns ``None`` when the field is missing, null, or of the
wrong type. NaN and infinities (which the json module accepts) count as
missing numbers. Callers decide the default per field, which keeps extraction
separate from business defaults:

    >>> day = {"tempmax": 24.1, "conditions": None}
    >>> get_float(day, "tempmax")
    24.1
    >>> get_float(day, "humidity") is None
    True
    >>> get_str(day, "conditions") is None
    True
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional


def get_float(data: Optional[Mapping[str, Any]], key: str) -> Optional[float]:
    """Finite numeric field as float; bools are not numbers here."""
    if not isinstance(data, Mapping):
        return None
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:  # integers beyond float range
        return None
    return number if math.isfinite(number) else None


def get_str(data: Optional[Mapping[str, Any]], key: str) -> Optional[str]:
    if not isinstance(data, Mapping):
        return None
    value = data.get(key)
    return value if isinstance(value, str) else None


def get_list(data: Optional[Mapping[str, Any]], key: str) -> Optional[List[Any]]:
    if not isinstance(data, Mapping):
        return None
    value = data.get(key)
    return value if isinstance(value, list) else None


def get_mapping(data: Optional[Mapping[str, Any]], key: str) -> Optional[Dict[str, Any]]:
    if not isinstance(data, Mapping):
        return None
    value = data.get(key)
    return value if isinstance(value, dict) else None


def first_mapping(items: Optional[List[Any]]) -> Optional[Dict[str, Any]]:
    """First element of a JSON array when it is an object."""
    if not items:
        return None
    head = items[0]
    return head if isinstance(head, dict) else None


def parse_population(raw: Optional[str]) -> int:
    """
    Parse a free-text population tag (OSM ``extratags.population``).

    Accepts thousands separators (``"1 234 567"``, ``"1,234,567"``) and
    trailing annotations (``"523000;2019"``). Anything unparseable is 0.
    """
    if not raw:
        return 0
    head = raw.split(";", 1)[0].strip()
    digits = "".join(head.replace(",", "").split())
    try:
        value = int(digits)
    except ValueError:
        return 0
    return max(0, value)
