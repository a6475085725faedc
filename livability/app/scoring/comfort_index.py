"""
comfort_index.py — Life Comfort Index (0–100, one decimal).

Two strategies are kept side by side and selected explicitly.

═══════════════════════════════════════════════════════════════════════════
WEIGHTED SEVEN-FACTOR
═══════════════════════════════════════════════════════════════════════════

    temp_comfort     = clamp(100 − 4·|T − 21|)
    humidity_comfort = clamp(100 − 2·|H − 50|)
    wind_comfort     = clamp(100 − 5·W)
    traffic_comfort  = clamp(100 − traffic)
    crime_comfort    = clamp(100 − crime)
    econ_score       = clamp(20·log₁₀(GDP / population + 1))   if GDP > 0 and population > 0
                     = 50                                       otherwise

    score = 0.22·temp + 0.12·humidity + 0.06·wind + 0.25·air
          + 0.15·traffic + 0.15·crime + 0.05·econ

═══════════════════════════════════════════════════════════════════════════
UNWEIGHTED FOUR-FACTOR
═══════════════════════════════════════════════════════════════════════════

    temp_score = clamp(100 − 5·|T − 21|)
    score      = mean(temp_score, air, traffic_comfort, crime_comfort)

No humidity, wind or economic term.

═══════════════════════════════════════════════════════════════════════════
SELECTION (ComfortMode.AUTO)
═══════════════════════════════════════════════════════════════════════════

    economic data resolved (GDP > 0 and population > 0) → weighted
    otherwise                                           → unweighted

WEIGHTED and UNWEIGHTED force one strategy regardless of data. Every clamp
is to [0, 100] and both results are clamped again before rounding, so
out-of-range raw inputs (wind = 500, humidity = −20) stay bounded.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

# Seven-factor weights (sum to 1.0)
W_TEMP = 0.22
W_HUMIDITY = 0.12
W_WIND = 0.06
W_AIR = 0.25
W_TRAFFIC = 0.15
W_CRIME = 0.15
W_ECON = 0.05

IDEAL_TEMP_C = 21.0
IDEAL_HUMIDITY_PCT = 50.0
NEUTRAL_ECON_SCORE = 50.0


class ComfortMode(str, Enum):
    AUTO = "auto"
    WEIGHTED = "weighted"      # seven-factor
    UNWEIGHTED = "unweighted"  # four-factor


@dataclass(frozen=True)
class ComfortResult:
    score: float
    mode: ComfortMode  # strategy actually applied, never AUTO


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def economy_index(gdp: float, population: float) -> float:
    """GDP-per-capita on a log scale, 0–100 (≈ 80 at $10k per head)."""
    return clamp(math.log10(gdp / population + 1.0) * 20.0)


def has_economic_data(gdp: float, population: float) -> bool:
    return gdp > 0 and population > 0


def weighted_comfort_index(
    temp: float,
    humidity: float,
    wind: float,
    air: float,
    traffic: float,
    crime: float,
    gdp: float = 0.0,
    population: float = 0.0,
) -> float:
    temp_comfort = clamp(100.0 - 4.0 * abs(temp - IDEAL_TEMP_C))
    humidity_comfort = clamp(100.0 - 2.0 * abs(humidity - IDEAL_HUMIDITY_PCT))
    wind_comfort = clamp(100.0 - 5.0 * wind)
    traffic_comfort = clamp(100.0 - traffic)
    crime_comfort = clamp(100.0 - crime)

    econ = (
        economy_index(gdp, population)
        if has_economic_data(gdp, population)
        else NEUTRAL_ECON_SCORE
    )

    score = (
        W_TEMP * temp_comfort
        + W_HUMIDITY * humidity_comfort
        + W_WIND * wind_comfort
        + W_AIR * clamp(air)
        + W_TRAFFIC * traffic_comfort
        + W_CRIME * crime_comfort
        + W_ECON * econ
    )
    return round(clamp(score), 1)


def unweighted_comfort_index(
    temp: float,
    air: float,
    traffic: float,
    crime: float,
) -> float:
    temp_score = clamp(100.0 - 5.0 * abs(temp - IDEAL_TEMP_C))
    parts = (temp_score, clamp(air), clamp(100.0 - traffic), clamp(100.0 - crime))
    return round(clamp(sum(parts) / len(parts)), 1)


class ComfortIndexCalculator:
    """
    Apply the configured comfort strategy.

    Usage:
        calc = ComfortIndexCalculator(ComfortMode.AUTO)
        result = calc.compute(temp=23.0, humidity=55, wind=10,
                              air=71, traffic=30, crime=12,
                              gdp=2.9e12, population=67_000_000)
        result.score, result.mode   # (…, ComfortMode.WEIGHTED)
    """

    def __init__(self, mode: ComfortMode = ComfortMode.AUTO):
        self.mode = ComfortMode(mode)

    def select_mode(self, gdp: float, population: float) -> ComfortMode:
        if self.mode is not ComfortMode.AUTO:
            return self.mode
        if has_economic_data(gdp, population):
            return ComfortMode.WEIGHTED
        return ComfortMode.UNWEIGHTED

    def compute(
        self,
        temp: float,
        humidity: float,
        wind: float,
        air: float,
        traffic: float,
        crime: float,
        gdp: float = 0.0,
        population: float = 0.0,
    ) -> ComfortResult:
        mode = self.select_mode(gdp, population)
        if mode is ComfortMode.WEIGHTED:
            score = weighted_comfort_index(
                temp, humidity, wind, air, traffic, crime, gdp, population,
            )
        else:
            score = unweighted_comfort_index(temp, air, traffic, crime)
        return ComfortResult(score=score, mode=mode)
