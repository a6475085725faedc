"""
weather_aggregator.py — build a CityEnvironmentReport for (city, date).

═══════════════════════════════════════════════════════════════════════════
PIPELINE
═══════════════════════════════════════════════════════════════════════════

    1. validate city                      InvalidInputError on empty
    2. weather provider (day | current)   UpstreamUnavailableError, no retry
    3. field extraction with defaults     (weather_service)
    4. proxy scores                       always succeeds
    5. country resolution                 best-effort, "" on failure
    6. country + city statistics  ┐       best-effort, run concurrently
    7. seismic risk (if lat/lon)  ┘       best-effort
    8. comfort index                      strategy per ComfortIndexCalculator
    9. past date?                         → return without forecast
   10. forecast text (if key configured)  failure text embedded, never raised

Only steps 1 and 2 can fail a request. Everything after the weather fetch
degrades: a missing country skips statistics, a failed USGS query drops the
seismic fields, a failed generation call writes its error into
``ai_forecast``.

Caching
=======
report_payload() keeps the serialised report in Redis per (city, date) for
REPORT_CACHE_TTL seconds. The default of 0 re-fetches every upstream on
every request. build_report() itself never caches.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx

from livability.app.ai.gemini_client import GeminiClient, TextGenerator
from livability.app.aggregation.models import CityEnvironmentReport, EconomicProfile, LocationQuery
from livability.app.core.cache import ReportCache
from livability.app.core.config import Settings
from livability.app.core.errors import (
    GenerationFailure,
    InvalidInputError,
    PartialDataUnavailable,
)
from livability.app.ingestion.geo_resolver import GeoResolver
from livability.app.ingestion.stats_service import CityStats, CountryStats, StatsFetcher
from livability.app.ingestion.weather_service import WeatherObservation, WeatherProvider
from livability.app.scoring.comfort_index import ComfortIndexCalculator
from livability.app.scoring.proxy_scores import LengthHashProxyScores, ProxyScoreProvider
from livability.app.scoring.seismic_risk import SeismicProfile, SeismicRiskModel

logger = logging.getLogger(__name__)

T = TypeVar("T")

FORECAST_INSTRUCTION = (
    "You are an assistant that generates a short weather forecast and a brief "
    "day comfort summary in English. You MUST use and PRESERVE the numeric values "
    "provided in the prompt exactly, and insert them into a readable sentence. "
    "Response format: one short line (not JSON) containing the temperature (°C), "
    "main conditions, humidity (%) and wind speed, plus a short tip (what to take "
    "/ how to dress). The numeric values in the sentence must exactly match those "
    "in the prompt."
)


def build_forecast_prompt(report: CityEnvironmentReport) -> str:
    obs = report.observation
    return (
        f"City: {report.city}\n"
        f"Date: {report.date.isoformat()} (Year: {report.date.year})\n"
        f"Temperature_max: {obs.temperature:.1f}\n"
        f"Humidity: {obs.humidity:.1f}\n"
        f"WindSpeed: {obs.wind_speed:.1f}\n"
        f"AirPurity: {report.air_purity}\n"
        f"RoadTraffic: {report.road_traffic}\n"
        f"CrimeRisks: {report.crime_risks}\n"
        f"LifeComfortIndex: {report.comfort.score:.1f}\n"
        f"Conditions: {obs.conditions}"
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WeatherAggregator:
    """
    Orchestrates every upstream call behind one report.

    Usage:
        aggregator = WeatherAggregator(settings)
        report = await aggregator.build_report("Lisbon")
        report.to_dict()
        payload = await aggregator.report_payload("Lisbon")   # cached when enabled
        await aggregator.close()

    All collaborators can be injected; anything not given is built on a
    shared httpx.AsyncClient owned by the aggregator.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        *,
        text_generator: Optional[TextGenerator] = None,
        proxy_scores: Optional[ProxyScoreProvider] = None,
        calculator: Optional[ComfortIndexCalculator] = None,
        cache: Optional[ReportCache] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.settings = settings
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()

        self.weather = WeatherProvider(settings, self.client)
        self.geo = GeoResolver(settings, self.client)
        self.stats = StatsFetcher(settings, self.client)
        self.seismic = SeismicRiskModel(settings, self.client)
        self.text_generator: TextGenerator = text_generator or GeminiClient(settings, self.client)
        self.proxy_scores: ProxyScoreProvider = proxy_scores or LengthHashProxyScores()
        self.calculator = calculator or ComfortIndexCalculator(settings.COMFORT_INDEX_MODE)
        self.cache = cache or ReportCache(settings.REDIS_URL, ttl=settings.REPORT_CACHE_TTL)
        self.clock = clock

    async def close(self) -> None:
        """Close the cache, and the HTTP client if this aggregator created it."""
        await self.cache.close()
        if self._owns_client and not self.client.is_closed:
            await self.client.aclose()

    # ── Public API ──

    async def build_report(
        self,
        city: str,
        day: Optional[date] = None,
    ) -> CityEnvironmentReport:
        city = (city or "").strip()
        if not city:
            raise InvalidInputError("city query param required", field="city")
        return await self._build(LocationQuery(city=city, date=day))

    async def report_payload(
        self,
        city: str,
        day: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Serialised report, served from the Redis cache when enabled."""
        key = f"{(city or '').strip().lower()}:{day.isoformat() if day else 'current'}"
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug("Report cache HIT for %s", key)
            return cached

        payload = (await self.build_report(city, day)).to_dict()
        await self.cache.set(key, payload)
        return payload

    # ── Pipeline ──

    async def _build(self, query: LocationQuery) -> CityEnvironmentReport:
        now = self.clock()
        observation = await self.weather.fetch(query.city, query.date)

        air = self.proxy_scores.air(query.city)
        traffic = self.proxy_scores.traffic(query.city)
        crime = self.proxy_scores.crime(query.city)

        country = await self.geo.resolve_country(observation)
        if not country:
            logger.warning("Country unresolved for %s; skipping statistics", query.city)

        economy, seismic = await asyncio.gather(
            self._economic_profile(query.city, country),
            self._seismic_profile(observation),
        )

        comfort = self.calculator.compute(
            temp=observation.temperature,
            humidity=observation.humidity,
            wind=observation.wind_speed,
            air=air,
            traffic=traffic,
            crime=crime,
            gdp=economy.gdp_usd if economy else 0.0,
            population=economy.population_total if economy else 0,
        )

        report = CityEnvironmentReport(
            city=query.city,
            date=query.date or now.date(),
            observation=observation,
            air_purity=air,
            road_traffic=traffic,
            crime_risks=crime,
            comfort=comfort,
            country=country,
            economy=economy,
            seismic=seismic,
        )
        logger.info(
            "Report for %s: comfort=%.1f (%s)",
            query.city, comfort.score, comfort.mode.value,
            extra={"city": query.city, "country": country, "comfort_index": comfort.score},
        )

        if query.is_past(now.date()):
            return report
        if not self.settings.has_generation_credentials:
            return report
        return await self._with_forecast(report)

    async def _best_effort(self, label: str, call: Awaitable[T]) -> Optional[T]:
        try:
            return await call
        except PartialDataUnavailable as exc:
            logger.warning("%s unavailable: %s", label, exc.message, extra={"upstream": exc.source})
            return None
        except (ValueError, TypeError, ArithmeticError) as exc:
            logger.warning("%s unusable: %r", label, exc)
            return None

    async def _economic_profile(self, city: str, country: str) -> Optional[EconomicProfile]:
        if not country:
            return None
        country_stats, city_stats = await asyncio.gather(
            self._best_effort("Country stats", self.stats.country_stats(country)),
            self._best_effort("City stats", self.stats.city_stats(city, country)),
        )
        if country_stats is None and city_stats is None:
            return None

        country_stats = country_stats or CountryStats()
        city_stats = city_stats or CityStats()
        return EconomicProfile(
            gdp_usd=country_stats.gdp_usd,
            population_total=country_stats.population,
            population_density=country_stats.density,
            city_population=city_stats.population,
            city_density=city_stats.density,
        )

    async def _seismic_profile(self, observation: WeatherObservation) -> Optional[SeismicProfile]:
        if not observation.has_coordinates:
            return None
        return await self._best_effort(
            "Seismic risk",
            self.seismic.assess_risk(
                observation.latitude,
                observation.longitude,
                self.settings.SEISMIC_RADIUS_KM,
                self.settings.SEISMIC_PERIOD_YEARS,
                now=self.clock(),
            ),
        )

    async def _with_forecast(self, report: CityEnvironmentReport) -> CityEnvironmentReport:
        try:
            text = await self.text_generator.generate_text(
                FORECAST_INSTRUCTION, build_forecast_prompt(report),
            )
        except GenerationFailure as exc:
            logger.warning("Forecast generation failed for %s: %s", report.city, exc.message)
            return report.with_forecast(f"text generation error: {exc.message}")
        return report.with_forecast(text)

