"""
proxy_scores.py — placeholder air / traffic / crime scores.

═══════════════════════════════════════════════════════════════════════════
THESE ARE NOT MEASUREMENTS
═══════════════════════════════════════════════════════════════════════════

No air-quality, traffic or crime feed is wired in yet. Each score below is a
deterministic function of the *length* of the city name and nothing else:

    score = (len(city) · k + c) mod 101

    air      k = 37, c = 17   (values < 20 are lifted by +30)
    traffic  k = 53, c = 11
    crime    k = 73, c = 29

Two cities with names of equal length get identical scores. Callers must
not present these numbers as empirical; they exist so the comfort index has
a full set of inputs. Replace them by passing a different
ProxyScoreProvider to the aggregator.

Worked examples:

    "Springfield" (11)  air = 424 % 101 = 20   (not < 20, no lift)
                        traffic = 594 % 101 = 89, crime = 832 % 101 = 24
    "Paris" (5)         air = 202 % 101 = 0 → 30 (lifted)

Examples
--------
>>> air_score("Springfield"), traffic_score("Springfield"), crime_score("Springfield")
(20, 89, 24)
>>> air_score("")
50
"""

from __future__ import annotations

from typing import Protocol

AIR_K, AIR_C = 37, 17
TRAFFIC_K, TRAFFIC_C = 53, 11
CRIME_K, CRIME_C = 73, 29
MODULUS = 101

AIR_LOW_THRESHOLD = 20
AIR_LOW_LIFT = 30
AIR_EMPTY_NAME = 50


def _length_hash(city: str, k: int, c: int) -> int:
    return (len(city) * k + c) % MODULUS


def air_score(city: str) -> int:
    """Placeholder air purity in [0, 100]; higher is cleaner."""
    # Empty name has its own neutral value, separate from the formula path.
    if city == "":
        return AIR_EMPTY_NAME
    value = _length_hash(city, AIR_K, AIR_C)
    if value < AIR_LOW_THRESHOLD:
        value += AIR_LOW_LIFT
    return value


def traffic_score(city: str) -> int:
    """Placeholder road congestion in [0, 100]; higher is worse."""
    return _length_hash(city, TRAFFIC_K, TRAFFIC_C)


def crime_score(city: str) -> int:
    """Placeholder crime risk in [0, 100]; higher is worse."""
    return _length_hash(city, CRIME_K, CRIME_C)


class ProxyScoreProvider(Protocol):
    """Source of air / traffic / crime scores for a city, each in [0, 100]."""

    def air(self, city: str) -> int: ...

    def traffic(self, city: str) -> int: ...

    def crime(self, city: str) -> int: ...


class LengthHashProxyScores:
    """Default provider backed by the placeholder functions above."""

    def air(self, city: str) -> int:
        return air_score(city)

    def traffic(self, city: str) -> int:
        return traffic_score(city)

    def crime(self, city: str) -> int:
        return crime_score(city)
