"""
weather_service.py — Visual Crossing timeline ingestion for livability reports.

Fetches either a single historical day or the current conditions for a city
and turns the loosely-typed JSON into a WeatherObservation.

Endpoint variants
=================
    Current conditions:  {base}/{city}?include=current
    Single day:          {base}/{city}/{YYYY-MM-DD}?include=days

Both variants also request ``unitGroup=metric`` and ``contentType=json``.

Field policy
============
Visual Crossing omits fields freely (no humidity for some stations, no
``tempmax`` on partial days). Extraction goes through ``payload`` accessors
that report present/absent, and the defaults below are applied here:

    numeric fields      → 0.0 when absent
    conditions          → "" when absent
    hours               → [] when absent

Temperature is the one field with a fallback chain, and ``tempmax == 0`` is
treated as "not reported" (a real 0 °C maximum is indistinguishable):

    current variant:  currentConditions.temp
                      → days[0].temp
                      → mean(tempmax, tempmin) when either is non-zero
                      reported temperature = tempmax if non-zero else the above
    day variant:      days[0].tempmax → days[0].temp → 0.0

Error handling
==============
    Transport error, timeout, non-200, undecodable JSON
        → UpstreamUnavailableError. No retry: the caller gets a 502.
    Day variant without a ``days`` entry
        → UpstreamUnavailableError ("no day data for that date").
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from livability.app.core.config import Settings
from livability.app.core.errors import UpstreamUnavailableError
from livability.app.ingestion.payload import (
    first_mapping,
    get_float,
    get_list,
    get_mapping,
    get_str,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "visualcrossing"


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WeatherObservation:
    """Weather snapshot for one city/day, defaults already applied."""
    temperature: float = 0.0
    temperature_max: float = 0.0
    temperature_min: float = 0.0
    humidity: float = 0.0        # %
    wind_speed: float = 0.0      # km/h (metric unit group)
    pressure: float = 0.0        # hPa
    conditions: str = ""
    hourly_breakdown: List[Any] = field(default_factory=list)  # opaque pass-through

    resolved_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _location_fields(body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "resolved_address": get_str(body, "resolvedAddress") or None,
        "latitude": get_float(body, "latitude"),
        "longitude": get_float(body, "longitude"),
    }


def parse_current_payload(body: Dict[str, Any]) -> WeatherObservation:
    """Build an observation from an ``include=current`` response."""
    current = get_mapping(body, "currentConditions")
    day = first_mapping(get_list(body, "days"))

    temp_max = get_float(day, "tempmax") or 0.0
    temp_min = get_float(day, "tempmin") or 0.0

    temp = get_float(current, "temp") or 0.0
    if not temp and day is not None:
        day_temp = get_float(day, "temp")
        if day_temp is not None:
            temp = day_temp
        elif temp_max or temp_min:
            temp = (temp_max + temp_min) / 2.0

    humidity = get_float(current, "humidity")
    if humidity is None:
        humidity = get_float(day, "humidity")
    wind = get_float(current, "windspeed")
    if wind is None:
        wind = get_float(day, "windspeed")
    pressure = get_float(current, "pressure")
    if pressure is None:
        pressure = get_float(day, "pressure")

    conditions = get_str(current, "conditions") or get_str(day, "conditions") or ""
    hours = get_list(current, "hours") or get_list(day, "hours") or []

    return WeatherObservation(
        temperature=temp_max if temp_max else temp,
        temperature_max=temp_max,
        temperature_min=temp_min,
        humidity=humidity or 0.0,
        wind_speed=wind or 0.0,
        pressure=pressure or 0.0,
        conditions=conditions,
        hourly_breakdown=hours,
        **_location_fields(body),
    )


def parse_day_payload(body: Dict[str, Any]) -> WeatherObservation:
    """Build an observation from a single-day (``include=days``) response."""
    day = first_mapping(get_list(body, "days"))
    if day is None:
        raise UpstreamUnavailableError(
            SERVICE_NAME, "returned no day data for that date",
        )

    temp_max = get_float(day, "tempmax") or 0.0
    if not temp_max:
        temp_max = get_float(day, "temp") or 0.0

    return WeatherObservation(
        temperature=temp_max,
        temperature_max=temp_max,
        temperature_min=get_float(day, "tempmin") or 0.0,
        humidity=get_float(day, "humidity") or 0.0,
        wind_speed=get_float(day, "windspeed") or 0.0,
        pressure=get_float(day, "pressure") or 0.0,
        conditions=get_str(day, "conditions") or "",
        hourly_breakdown=get_list(day, "hours") or [],
        **_location_fields(body),
    )


# ---------------------------------------------------------------------------
# Provider client
# ---------------------------------------------------------------------------

class WeatherProvider:
    """
    Visual Crossing timeline client.

    Usage:
        provider = WeatherProvider(settings, client)
        obs = await provider.fetch("Lisbon")                 # current
        obs = await provider.fetch("Lisbon", date(2024, 5, 1))  # one day
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    def build_url(self, city: str, day: Optional[date] = None) -> str:
        url = f"{self.settings.VISUAL_CROSSING_BASE_URL}/{quote(city, safe='')}"
        if day is not None:
            url += f"/{day.isoformat()}"
        return url

    async def fetch(self, city: str, day: Optional[date] = None) -> WeatherObservation:
        params = {
            "unitGroup": "metric",
            "include": "days" if day is not None else "current",
            "key": self.settings.VISUAL_CROSSING_KEY,
            "contentType": "json",
        }
        url = self.build_url(city, day)
        start = time.monotonic()

        try:
            response = await self.client.get(
                url, params=params, timeout=self.settings.WEATHER_FETCH_TIMEOUT,
            )
        except httpx.HTTPError as exc:
            logger.error("Weather fetch failed for %s: %s", city, exc)
            raise UpstreamUnavailableError(
                SERVICE_NAME, f"failed to fetch: {exc}",
            ) from exc

        if response.status_code != 200:
            logger.error(
                "Weather provider returned %d for %s",
                response.status_code, city,
            )
            raise UpstreamUnavailableError(
                SERVICE_NAME, "returned non-200",
                status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(
                SERVICE_NAME, f"failed to decode response: {exc}",
            ) from exc
        if not isinstance(body, dict):
            raise UpstreamUnavailableError(SERVICE_NAME, "unexpected payload shape")

        observation = parse_day_payload(body) if day is not None else parse_current_payload(body)

        logger.info(
            "Fetched weather for %s (%s) in %.0fms",
            city, day.isoformat() if day else "current",
            (time.monotonic() - start) * 1000,
        )
        return observation
