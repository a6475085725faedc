"""
stats_service.py — country and city statistics from public registries.

Sources
=======
    REST Countries   GET /v3.1/name/{country}
                     → [ {"population": int, "area": km², "cca3": "FRA"} ]
    World Bank       GET /v2/country/{cca3}/indicator/NY.GDP.MKTP.CD
                     → [ {paging}, [ {"value": float | null, "date": "2023"}, ... ] ]
    Nominatim        GET /search?q="{city}, {country}"&extratags=1
                     → [ {"extratags": {"population": "2133111"}} ]

Partial results
===============
A zero in any returned field means "unknown", never a real zero. The World
Bank series comes back newest-first but may open with nulls for years not
yet published, so the first non-null value wins.

Country lookup failure (transport, non-200, empty array, malformed record)
raises PartialDataUnavailable. A GDP lookup failure after a successful country
lookup is not an error: gdp simply stays 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx

from livability.app.core.config import Settings
from livability.app.core.errors import PartialDataUnavailable
from livability.app.ingestion.payload import (
    first_mapping,
    get_float,
    get_mapping,
    get_str,
    parse_population,
)

logger = logging.getLogger(__name__)

GDP_INDICATOR = "NY.GDP.MKTP.CD"


@dataclass(frozen=True)
class CountryStats:
    gdp_usd: float = 0.0
    population: int = 0
    area_km2: float = 0.0

    @property
    def density(self) -> float:
        """People per km², 0 when either side is unknown."""
        if self.population > 0 and self.area_km2 > 0:
            return self.population / self.area_km2
        return 0.0


@dataclass(frozen=True)
class CityStats:
    population: int = 0
    area_km2: float = 0.0  # the place lookup carries no area; 0 = unknown

    @property
    def density(self) -> float:
        if self.population > 0 and self.area_km2 > 0:
            return self.population / self.area_km2
        return 0.0


def first_gdp_value(payload: Any) -> float:
    """First non-null numeric ``value`` in a World Bank indicator response."""
    if not isinstance(payload, list) or len(payload) < 2:
        return 0.0
    series = payload[1]
    if not isinstance(series, list):
        return 0.0
    for point in series:
        value = get_float(point, "value")
        if value is not None:
            return value
    return 0.0


class StatsFetcher:
    """Country-level economy/population and city-level population lookups."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    async def _get_json(self, source: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.get(
                url, timeout=self.settings.STATS_TIMEOUT, **kwargs,
            )
        except httpx.HTTPError as exc:
            raise PartialDataUnavailable(source, str(exc)) from exc
        if response.status_code != 200:
            raise PartialDataUnavailable(
                source, f"returned {response.status_code}",
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise PartialDataUnavailable(source, f"undecodable body: {exc}") from exc

    async def country_stats(self, country: str) -> CountryStats:
        if not country:
            raise PartialDataUnavailable("restcountries", "country empty")

        records = await self._get_json(
            "restcountries",
            f"{self.settings.REST_COUNTRIES_URL}/name/{quote(country, safe='')}",
        )
        record = first_mapping(records if isinstance(records, list) else None)
        if record is None:
            raise PartialDataUnavailable("restcountries", "no country data", country=country)

        try:
            population = max(0, int(get_float(record, "population") or 0.0))
        except (ValueError, OverflowError) as exc:
            raise PartialDataUnavailable("restcountries", f"malformed record: {exc}") from exc
        area = get_float(record, "area") or 0.0

        gdp = 0.0
        cca3 = get_str(record, "cca3")
        if cca3:
            gdp = await self._gdp_for(cca3)

        return CountryStats(gdp_usd=gdp, population=population, area_km2=area)

    async def _gdp_for(self, cca3: str) -> float:
        try:
            payload = await self._get_json(
                "worldbank",
                f"{self.settings.WORLD_BANK_URL}/country/{cca3.lower()}/indicator/{GDP_INDICATOR}",
                params={"format": "json", "per_page": 1000},
            )
        except PartialDataUnavailable as exc:
            logger.warning("GDP lookup failed for %s: %s", cca3, exc.message)
            return 0.0
        return first_gdp_value(payload)

    async def city_stats(self, city: str, country: str) -> CityStats:
        if not city:
            raise PartialDataUnavailable("nominatim", "city empty")

        query = f"{city}, {country}" if country else city
        results = await self._get_json(
            "nominatim",
            f"{self.settings.NOMINATIM_URL}/search",
            params={
                "format": "json",
                "limit": 1,
                "q": query,
                "addressdetails": 1,
                "extratags": 1,
            },
            headers={"User-Agent": self.settings.NOMINATIM_USER_AGENT},
        )
        place = first_mapping(results if isinstance(results, list) else None)
        if place is None:
            raise PartialDataUnavailable("nominatim", "no place result", query=query)

        raw_population: Optional[str] = get_str(get_mapping(place, "extratags"), "population")
        return CityStats(population=parse_population(raw_population))
