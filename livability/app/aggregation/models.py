"""
Data models for the livability aggregation pipeline.

    LocationQuery          validated (city, optional date) request
    EconomicProfile        country/city statistics; 0 means unknown
    CityEnvironmentReport  immutable per-request result with to_dict()

The JSON produced by CityEnvironmentReport.to_dict() keeps the flat field
names existing clients read (``air_purity``, ``life_comfort_index``,
``city_density_per_km2`` …) and omits optional fields that are zero or
empty.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

from livability.app.core.errors import InvalidInputError
from livability.app.ingestion.weather_service import WeatherObservation
from livability.app.scoring.comfort_index import ComfortResult, economy_index
from livability.app.scoring.seismic_risk import SeismicProfile

DATE_FORMATS = ("%d-%m-%Y", "%Y-%m-%d")
REPORT_DATE_FORMAT = "%d-%m-%Y"


def parse_query_date(raw: str) -> date:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    raise InvalidInputError(
        "date must be DD-MM-YYYY or YYYY-MM-DD", field="date", value=raw,
    )


@dataclass(frozen=True)
class LocationQuery:
    city: str
    date: Optional[date] = None

    @classmethod
    def parse(cls, city: Optional[str], raw_date: Optional[str] = None) -> "LocationQuery":
        city = (city or "").strip()
        if not city:
            raise InvalidInputError("city query param required", field="city")
        day = parse_query_date(raw_date.strip()) if raw_date and raw_date.strip() else None
        return cls(city=city, date=day)

    def is_past(self, today: date) -> bool:
        """True only for an explicit date strictly before ``today``."""
        return self.date is not None and self.date < today


@dataclass(frozen=True)
class EconomicProfile:
    gdp_usd: float = 0.0
    population_total: int = 0
    population_density: float = 0.0
    city_population: int = 0
    city_density: float = 0.0

    @property
    def economy_index(self) -> Optional[float]:
        if self.population_total > 0:
            return economy_index(max(self.gdp_usd, 0.0), self.population_total)
        return None


def _put(out: Dict[str, Any], key: str, value: Any) -> None:
    if value:
        out[key] = value


@dataclass(frozen=True)
class CityEnvironmentReport:
    city: str
    date: date
    observation: WeatherObservation
    air_purity: int
    road_traffic: int
    crime_risks: int
    comfort: ComfortResult
    country: str = ""
    economy: Optional[EconomicProfile] = None
    seismic: Optional[SeismicProfile] = None
    ai_forecast: Optional[str] = None

    def with_forecast(self, text: str) -> "CityEnvironmentReport":
        return dataclasses.replace(self, ai_forecast=text)

    def to_dict(self) -> Dict[str, Any]:
        obs = self.observation
        out: Dict[str, Any] = {
            "city": self.city,
            "temperature": obs.temperature,
            "conditions": obs.conditions,
            "air_purity": self.air_purity,
            "road_traffic": self.road_traffic,
            "crime_risks": self.crime_risks,
            "life_comfort_index": self.comfort.score,
            "comfort_mode": self.comfort.mode.value,
            "date": self.date.strftime(REPORT_DATE_FORMAT),
        }
        _put(out, "resolved_address", obs.resolved_address)
        _put(out, "country", self.country)
        _put(out, "temp_max", obs.temperature_max)
        _put(out, "temp_min", obs.temperature_min)
        _put(out, "humidity", obs.humidity)
        _put(out, "wind_speed", obs.wind_speed)
        _put(out, "pressure", obs.pressure)
        _put(out, "hours", obs.hourly_breakdown)
        _put(out, "ai_forecast", self.ai_forecast)

        if self.economy is not None:
            eco = self.economy
            _put(out, "gdp_usd", eco.gdp_usd)
            _put(out, "population_total", eco.population_total)
            _put(out, "population_density", eco.population_density)
            _put(out, "city_population", eco.city_population)
            _put(out, "city_density_per_km2", eco.city_density)
            _put(out, "economy_index", eco.economy_index)

        if self.seismic is not None:
            seismic = self.seismic.to_dict()
            out["earthquake_risk"] = seismic["risk_score"]
            out["earthquake_count"] = seismic["event_count"]
            out["earthquake_max_magnitude"] = seismic["max_magnitude"]
            out["recent_earthquakes"] = seismic["recent_events"]

        return out
