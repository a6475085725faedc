"""
geo_resolver.py — best-effort country resolution for a weather payload.

Resolution order:
    1. Last comma-separated token of the provider's resolved address
       ("Lyon, Auvergne-Rhône-Alpes, France" → "France").
    2. Nominatim reverse geocoding of the payload's latitude/longitude,
       reading ``address.country``.

Country resolution never fails a request: every error path returns "".
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from livability.app.core.config import Settings
from livability.app.ingestion.payload import get_mapping, get_str
from livability.app.ingestion.weather_service import WeatherObservation

logger = logging.getLogger(__name__)


def country_from_address(address: Optional[str]) -> str:
    """Trailing comma-delimited segment of an address, trimmed."""
    if not address:
        return ""
    return address.split(",")[-1].strip()


class GeoResolver:
    """Determine the country a weather observation belongs to."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    async def resolve_country(self, observation: WeatherObservation) -> str:
        if observation.resolved_address:
            return country_from_address(observation.resolved_address)
        if observation.has_coordinates:
            return await self.reverse_geocode(observation.latitude, observation.longitude)
        return ""

    async def reverse_geocode(self, latitude: float, longitude: float) -> str:
        params = {
            "format": "json",
            "lat": f"{latitude:.6f}",
            "lon": f"{longitude:.6f}",
            "zoom": 3,
            "addressdetails": 1,
        }
        try:
            response = await self.client.get(
                f"{self.settings.NOMINATIM_URL}/reverse",
                params=params,
                headers={"User-Agent": self.settings.NOMINATIM_USER_AGENT},
                timeout=self.settings.GEO_TIMEOUT,
            )
            if response.status_code != 200:
                logger.warning(
                    "Reverse geocoding returned %d for (%.4f, %.4f)",
                    response.status_code, latitude, longitude,
                )
                return ""
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Reverse geocoding failed for (%.4f, %.4f): %s",
                latitude, longitude, exc,
            )
            return ""

        return get_str(get_mapping(body, "address"), "country") or ""
