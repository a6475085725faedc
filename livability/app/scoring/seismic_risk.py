"""
seismic_risk.py — earthquake risk score from the USGS event catalogue.

Queries the USGS FDSN Event Web Service for every M ≥ 3.0 event within a
radius of a coordinate over the trailing N years and condenses them into a
0–100 risk score plus a short digest of recent events.

═══════════════════════════════════════════════════════════════════════════
TIME-DECAYED ENERGY SCORE
═══════════════════════════════════════════════════════════════════════════

Radiated seismic energy grows as 10^(1.5·M) (Gutenberg-Richter energy
relation), so one M7 releases ~32× the energy of an M6. Each event is
weighted by an exponential decay with a one-year time constant:

    energy_i = 10^(1.5 · M_i)
    decay_i  = e^(−days_since_i / 365)
    E        = Σ energy_i · decay_i               (all events with M ≥ 0)

The total is normalised against a single fresh M7.0 event:

    E_ref = 10^(1.5 · 7.0) = 10^10.5
    score = clamp(50 · log₁₀(E / E_ref + 1), 0, 100)

Reference points:
    no events                → 0
    one M7.0 today           → 50 · log₁₀ 2  ≈ 15.05
    energy of 99 fresh M7.0  → 100

The log keeps the score strictly increasing in E while compressing the huge
dynamic range of magnitudes.

Counting vs. energy
===================
``event_count`` and ``max_magnitude`` only consider M ≥ 3.0. The energy sum
considers every event with a non-negative magnitude (including features
whose ``mag`` is missing, read as 0). Small events barely move the sum but
are not discarded from it.

``recent_events`` holds at most 10 qualifying events, newest first.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from livability.app.core.config import Settings
from livability.app.core.errors import PartialDataUnavailable
from livability.app.ingestion.payload import get_float, get_list, get_mapping, get_str

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════

MIN_QUALIFYING_MAGNITUDE = 3.0
REFERENCE_MAGNITUDE = 7.0
REFERENCE_ENERGY = 10.0 ** (1.5 * REFERENCE_MAGNITUDE)
DECAY_DAYS = 365.0
SCORE_SCALE = 50.0
MAX_RECENT_EVENTS = 10


# ═══════════════════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SeismicEvent:
    """One catalogue entry reduced to what the digest needs."""
    magnitude: float
    time: Optional[datetime]
    place: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time.isoformat() if self.time else None,
            "magnitude": self.magnitude,
            "place": self.place,
        }


@dataclass(frozen=True)
class SeismicProfile:
    risk_score: float = 0.0
    event_count: int = 0
    max_magnitude: float = 0.0
    recent_events: List[SeismicEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_score": round(self.risk_score, 2),
            "event_count": self.event_count,
            "max_magnitude": self.max_magnitude,
            "recent_events": [e.to_dict() for e in self.recent_events],
        }


# ═══════════════════════════════════════════════════════════════════════════
# Scoring
# ═══════════════════════════════════════════════════════════════════════════

def event_energy(magnitude: float) -> float:
    return 10.0 ** (1.5 * magnitude)


def decayed_energy(events: Iterable[SeismicEvent], now: datetime) -> float:
    """Σ 10^(1.5·M) · e^(−days/365) over events with M ≥ 0 and a known time."""
    total = 0.0
    for event in events:
        if event.magnitude < 0.0 or event.time is None:
            continue
        days = (now - event.time).total_seconds() / 86400.0
        total += event_energy(event.magnitude) * math.exp(-days / DECAY_DAYS)
    return total


def energy_to_score(total_energy: float) -> float:
    score = math.log10(total_energy / REFERENCE_ENERGY + 1.0) * SCORE_SCALE
    return max(0.0, min(100.0, score))


def compute_risk_score(events: Iterable[SeismicEvent], now: datetime) -> float:
    """
    Risk score for a set of events as seen at ``now``.

    >>> now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    >>> round(compute_risk_score([SeismicEvent(7.0, now)], now), 2)
    15.05
    >>> compute_risk_score([], now)
    0.0
    """
    return energy_to_score(decayed_energy(events, now))


def summarise_events(
    events: Iterable[SeismicEvent],
) -> Tuple[int, float, List[SeismicEvent]]:
    """Count, max magnitude and newest-first digest of M ≥ 3.0 events."""
    qualifying = [e for e in events if e.magnitude >= MIN_QUALIFYING_MAGNITUDE]
    max_mag = max((e.magnitude for e in qualifying), default=0.0)
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    recent = sorted(qualifying, key=lambda e: e.time or oldest, reverse=True)
    return len(qualifying), max_mag, recent[:MAX_RECENT_EVENTS]


def build_profile(events: List[SeismicEvent], now: datetime) -> SeismicProfile:
    count, max_mag, recent = summarise_events(events)
    return SeismicProfile(
        risk_score=compute_risk_score(events, now),
        event_count=count,
        max_magnitude=max_mag,
        recent_events=recent,
    )


# ═══════════════════════════════════════════════════════════════════════════
# USGS API Integration
# ═══════════════════════════════════════════════════════════════════════════

def parse_usgs_feature(feature: Any) -> Optional[SeismicEvent]:
    """
    Reduce one GeoJSON feature to a SeismicEvent.

    USGS GeoJSON format:
        feature = {
            "type": "Feature",
            "properties": { "mag": 5.2, "place": "...", "time": 1708617600000, ... },
            ...
        }
    """
    props = get_mapping(feature, "properties")
    if props is None:
        logger.warning("Skipping USGS feature without properties")
        return None

    ts_ms = get_float(props, "time")
    timestamp = (
        datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)
        if ts_ms is not None else None
    )
    return SeismicEvent(
        magnitude=get_float(props, "mag") or 0.0,
        time=timestamp,
        place=get_str(props, "place") or "",
    )


def years_before(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:  # 29 February
        return moment.replace(year=moment.year - years, day=28)


class SeismicRiskModel:
    """
    USGS-backed earthquake risk assessment.

    Usage:
        model = SeismicRiskModel(settings, client)
        profile = await model.assess_risk(35.68, 139.69, radius_km=300, period_years=5)
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    async def fetch_events(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        start: datetime,
        end: datetime,
    ) -> List[SeismicEvent]:
        params: Dict[str, Any] = {
            "format": "geojson",
            "starttime": start.date().isoformat(),
            "endtime": end.date().isoformat(),
            "latitude": f"{latitude:.6f}",
            "longitude": f"{longitude:.6f}",
            "maxradiuskm": radius_km,
            "minmagnitude": MIN_QUALIFYING_MAGNITUDE,
            "orderby": "time",
        }
        try:
            response = await self.client.get(
                f"{self.settings.USGS_EARTHQUAKE_URL}/query",
                params=params,
                timeout=self.settings.SEISMIC_TIMEOUT,
            )
        except httpx.HTTPError as exc:
            raise PartialDataUnavailable("usgs", str(exc)) from exc

        if response.status_code != 200:
            raise PartialDataUnavailable(
                "usgs", f"returned {response.status_code}",
                status=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise PartialDataUnavailable("usgs", f"undecodable body: {exc}") from exc

        events: List[SeismicEvent] = []
        try:
            for feature in get_list(data, "features") or []:
                event = parse_usgs_feature(feature)
                if event is not None:
                    events.append(event)
        except (ValueError, OverflowError, OSError) as exc:
            raise PartialDataUnavailable("usgs", f"malformed feature: {exc}") from exc
        return events

    async def assess_risk(
        self,
        latitude: float,
        longitude: float,
        radius_km: Optional[float] = None,
        period_years: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> SeismicProfile:
        radius_km = radius_km if radius_km is not None else self.settings.SEISMIC_RADIUS_KM
        period_years = (
            period_years if period_years is not None
            else self.settings.SEISMIC_PERIOD_YEARS
        )
        now = now or datetime.now(timezone.utc)

        events = await self.fetch_events(
            latitude, longitude, radius_km, years_before(now, period_years), now,
        )
        try:
            profile = build_profile(events, now)
        except OverflowError as exc:
            raise PartialDataUnavailable("usgs", f"magnitude out of range: {exc}") from exc

        logger.info(
            "Seismic risk at (%.3f, %.3f): score=%.2f from %d events",
            latitude, longitude, profile.risk_score, len(events),
            extra={"lat": latitude, "lon": longitude, "risk_score": profile.risk_score},
        )
        return profile
