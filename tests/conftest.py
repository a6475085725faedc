"""
Shared fixtures — settings and a fake for every upstream HTTP service.

FakeUpstreams is an httpx.MockTransport handler keyed by host and path
prefix. Each route returns a fresh httpx.Response per call and every
request is recorded so tests can assert on what went over the wire.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from livability.app.core.config import Settings

VC_HOST = "weather.visualcrossing.com"
RC_HOST = "restcountries.com"
WB_HOST = "api.worldbank.org"
OSM_HOST = "nominatim.openstreetmap.org"
USGS_HOST = "earthquake.usgs.gov"
GEMINI_HOST = "generativelanguage.googleapis.com"

FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def make_settings(**overrides: Any) -> Settings:
    values = {
        "ENVIRONMENT": "testing",
        "DEBUG": False,
        "LOG_LEVEL": "WARNING",
        "VISUAL_CROSSING_KEY": "vc-test-key",
        "GEMINI_API_KEY": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


Handler = Callable[[httpx.Request], httpx.Response]


class FakeUpstreams:
    def __init__(self) -> None:
        self.routes: List[Tuple[str, str, Handler]] = []
        self.requests: List[httpx.Request] = []

    def add(
        self,
        host: str,
        path_prefix: str,
        payload: Any = None,
        *,
        status: int = 200,
        handler: Optional[Handler] = None,
    ) -> "FakeUpstreams":
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(status, json=payload)
        self.routes.insert(0, (host, path_prefix, handler))
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for host, prefix, handler in self.routes:
            if request.url.host == host and request.url.path.startswith(prefix):
                return handler(request)
        return httpx.Response(404, json={"error": "no fake route"})

    def hits(self, host: str, path_prefix: str = "/") -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.host == host and r.url.path.startswith(path_prefix)
        ]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)


class FakeRedis:
    """
    In-memory stand-in for a redis.asyncio client: string get/set with
    ``ex=`` expiry against a manually advanced clock. Expired keys are gone
    for every reader, as on a real server.
    """

    def __init__(self, *, error: Optional[Exception] = None) -> None:
        self.now = 0.0
        self.error = error
        self.store: Dict[str, Tuple[Optional[float], str]] = {}
        self.set_calls: List[Tuple[str, Optional[int]]] = []
        self.closed = False

    def advance(self, seconds: float) -> None:
        self.now += seconds
        self.store = {
            k: v for k, v in self.store.items() if v[0] is None or v[0] > self.now
        }

    async def get(self, key: str) -> Optional[str]:
        if self.error is not None:
            raise self.error
        entry = self.store.get(key)
        return entry[1] if entry else None

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        if self.error is not None:
            raise self.error
        self.set_calls.append((key, ex))
        self.store[key] = (self.now + ex if ex else None, value)
        return True

    async def aclose(self) -> None:
        self.closed = True


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content.decode("utf-8"))


def raw_json(body: str, status: int = 200) -> Handler:
    """Handler serving ``body`` verbatim, for JSON the encoder would refuse (NaN, Infinity)."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status, content=body.encode("utf-8"), headers={"Content-Type": "application/json"},
        )
    return handler


# ═══════════════════════════════════════════════════════════════════════════
# Canned upstream payloads
# ═══════════════════════════════════════════════════════════════════════════

def lisbon_current_payload() -> dict:
    return {
        "resolvedAddress": "Lisboa, Portugal",
        "latitude": 38.7167,
        "longitude": -9.1333,
        "days": [{
            "datetime": "2026-10-18",
            "tempmax": 24.0,
            "tempmin": 15.0,
            "temp": 19.5,
            "humidity": 60.0,
            "windspeed": 12.0,
            "pressure": 1016.0,
            "conditions": "Clear",
            "hours": [{"datetime": "00:00:00", "temp": 16.0}],
        }],
        "currentConditions": {
            "temp": 21.3,
            "humidity": 55.0,
            "windspeed": 10.0,
            "pressure": 1015.0,
            "conditions": "Partially cloudy",
        },
    }


def lisbon_day_payload() -> dict:
    return {
        "resolvedAddress": "Lisboa, Portugal",
        "latitude": 38.7167,
        "longitude": -9.1333,
        "days": [{
            "datetime": "2026-10-01",
            "tempmax": 26.5,
            "tempmin": 17.0,
            "humidity": 48.0,
            "windspeed": 8.0,
            "pressure": 1012.0,
            "conditions": "Clear",
        }],
    }


PORTUGAL_RECORDS = [{"population": 10_300_000, "area": 92_090.0, "cca3": "PRT"}]

PORTUGAL_GDP = [
    {"page": 1, "pages": 1, "per_page": 1000, "total": 3},
    [
        {"date": "2025", "value": None},
        {"date": "2024", "value": 2.87e11},
        {"date": "2023", "value": 2.67e11},
    ],
]

LISBON_PLACE = [{"display_name": "Lisboa, Portugal", "extratags": {"population": "545,923"}}]


def usgs_feature(magnitude: float, when: datetime, place: str = "somewhere") -> dict:
    return {
        "type": "Feature",
        "properties": {
            "mag": magnitude,
            "place": place,
            "time": int(when.timestamp() * 1000),
        },
    }


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def full_upstreams(**gemini_text: str) -> FakeUpstreams:
    """Every upstream healthy, Lisbon-shaped."""
    fake = FakeUpstreams()

    def weather(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("include") == "days":
            return httpx.Response(200, json=lisbon_day_payload())
        return httpx.Response(200, json=lisbon_current_payload())

    fake.add(VC_HOST, "/", handler=weather)
    fake.add(RC_HOST, "/v3.1/name/", PORTUGAL_RECORDS)
    fake.add(WB_HOST, "/v2/country/prt/", PORTUGAL_GDP)
    fake.add(OSM_HOST, "/search", LISBON_PLACE)
    fake.add(OSM_HOST, "/reverse", {"address": {"country": "Portugal"}})
    fake.add(USGS_HOST, "/fdsnws/event/1/query", {"features": [
        usgs_feature(6.1, FIXED_NOW.replace(month=6), "offshore Portugal"),
        usgs_feature(3.1, FIXED_NOW.replace(month=9), "near Setúbal"),
    ]})
    fake.add(GEMINI_HOST, "/", gemini_reply(gemini_text.get("text", "Sunny, 24°C.")))
    return fake


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def upstreams() -> FakeUpstreams:
    return full_upstreams()
