"""
Tests for the seismic risk model.

Covers:
    • Decayed-energy score reference points (empty, one fresh M7, cap)
    • Monotonicity in magnitude, recency and event count
    • Counting / digest rules (M ≥ 3.0, newest first, at most 10)
    • USGS GeoJSON feature parsing
    • USGS query parameters and failure handling (MockTransport)
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from conftest import FIXED_NOW, USGS_HOST, FakeUpstreams, make_settings, usgs_feature
from livability.app.core.errors import PartialDataUnavailable
from livability.app.scoring.seismic_risk import (
    MAX_RECENT_EVENTS,
    SeismicEvent,
    SeismicRiskModel,
    build_profile,
    compute_risk_score,
    decayed_energy,
    parse_usgs_feature,
    summarise_events,
    years_before,
)

NOW = FIXED_NOW


def ev(mag: float, days_ago: float = 0.0, place: str = "") -> SeismicEvent:
    return SeismicEvent(magnitude=mag, time=NOW - timedelta(days=days_ago), place=place)


# ═══════════════════════════════════════════════════════════════════════════
# Score
# ═══════════════════════════════════════════════════════════════════════════

class TestRiskScore:
    def test_no_events(self):
        assert compute_risk_score([], NOW) == 0.0

    def test_single_fresh_m7(self):
        """50 · log₁₀(2) ≈ 15.05"""
        assert compute_risk_score([ev(7.0)], NOW) == pytest.approx(15.05, abs=0.01)

    def test_capped_at_100(self):
        assert compute_risk_score([ev(7.0)] * 99, NOW) == pytest.approx(100.0)
        assert compute_risk_score([ev(9.5)] * 5, NOW) == 100.0

    def test_bigger_magnitude_scores_higher(self):
        assert compute_risk_score([ev(6.0)], NOW) < compute_risk_score([ev(6.5)], NOW)

    def test_older_event_scores_lower(self):
        assert compute_risk_score([ev(6.0, days_ago=700)], NOW) < compute_risk_score([ev(6.0)], NOW)

    def test_one_year_decay_factor(self):
        energy_now = decayed_energy([ev(5.0)], NOW)
        energy_year = decayed_energy([ev(5.0, days_ago=365)], NOW)
        assert energy_year / energy_now == pytest.approx(1 / 2.718281828, rel=1e-6)

    def test_more_events_score_higher(self):
        one = compute_risk_score([ev(5.0)], NOW)
        two = compute_risk_score([ev(5.0), ev(4.0, days_ago=30)], NOW)
        assert two > one

    def test_small_events_still_contribute_energy(self):
        assert decayed_energy([ev(2.0)], NOW) > 0.0

    def test_negative_magnitude_ignored(self):
        assert decayed_energy([ev(-0.5)], NOW) == 0.0

    def test_unknown_time_ignored(self):
        assert decayed_energy([SeismicEvent(magnitude=6.0, time=None)], NOW) == 0.0


# ═══════════════════════════════════════════════════════════════════════════
# Digest
# ═══════════════════════════════════════════════════════════════════════════

class TestSummariseEvents:
    def test_counts_only_qualifying(self):
        count, max_mag, recent = summarise_events([ev(2.9), ev(3.0), ev(4.4, 10)])
        assert count == 2
        assert max_mag == 4.4
        assert all(e.magnitude >= 3.0 for e in recent)

    def test_empty(self):
        assert summarise_events([]) == (0, 0.0, [])

    def test_newest_first_and_capped(self):
        events = [ev(3.5, days_ago=d) for d in range(25)]
        _, _, recent = summarise_events(events)
        assert len(recent) == MAX_RECENT_EVENTS
        times = [e.time for e in recent]
        assert times == sorted(times, reverse=True)
        assert recent[0].time == NOW

    def test_profile_to_dict(self):
        profile = build_profile([ev(7.0, place="Offshore"), ev(2.0)], NOW)
        data = profile.to_dict()
        assert data["risk_score"] == round(profile.risk_score, 2)
        assert data["event_count"] == 1
        assert data["max_magnitude"] == 7.0
        assert data["recent_events"] == [
            {"time": NOW.isoformat(), "magnitude": 7.0, "place": "Offshore"},
        ]


# ═══════════════════════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════════════════════

class TestParseFeature:
    def test_full_feature(self):
        event = parse_usgs_feature(usgs_feature(5.2, NOW, "10 km S of Town"))
        assert event == SeismicEvent(magnitude=5.2, time=NOW, place="10 km S of Town")

    def test_missing_properties(self):
        assert parse_usgs_feature({"type": "Feature"}) is None

    def test_missing_magnitude_reads_zero(self):
        event = parse_usgs_feature({"properties": {"time": 0}})
        assert event.magnitude == 0.0
        assert event.time == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_missing_time(self):
        assert parse_usgs_feature({"properties": {"mag": 3.3}}).time is None


class TestYearsBefore:
    def test_plain(self):
        assert years_before(NOW, 5) == NOW.replace(year=2021)

    def test_leap_day(self):
        leap = datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert years_before(leap, 5) == datetime(2019, 2, 28, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
# USGS client
# ═══════════════════════════════════════════════════════════════════════════

class TestSeismicRiskModel:
    def _model(self, fake: FakeUpstreams, **overrides) -> SeismicRiskModel:
        return SeismicRiskModel(make_settings(**overrides), fake.client())

    def test_query_parameters(self):
        fake = FakeUpstreams().add(USGS_HOST, "/fdsnws/event/1/query", {"features": []})
        model = self._model(fake)

        profile = asyncio.run(model.assess_risk(35.6895, 139.6917, now=NOW))

        assert profile.risk_score == 0.0
        (request,) = fake.hits(USGS_HOST)
        params = request.url.params
        assert params["format"] == "geojson"
        assert params["starttime"] == "2021-10-18"
        assert params["endtime"] == "2026-10-18"
        assert params["latitude"] == "35.689500"
        assert params["longitude"] == "139.691700"
        assert float(params["maxradiuskm"]) == 300.0
        assert float(params["minmagnitude"]) == 3.0
        assert params["orderby"] == "time"

    def test_explicit_radius_and_period(self):
        fake = FakeUpstreams().add(USGS_HOST, "/fdsnws/event/1/query", {"features": []})
        model = self._model(fake)

        asyncio.run(model.assess_risk(0.0, 0.0, radius_km=50, period_years=1, now=NOW))

        params = fake.hits(USGS_HOST)[0].url.params
        assert float(params["maxradiuskm"]) == 50.0
        assert params["starttime"] == "2025-10-18"

    def test_profile_from_features(self):
        fake = FakeUpstreams().add(USGS_HOST, "/fdsnws/event/1/query", {"features": [
            usgs_feature(7.0, NOW, "fresh"),
            usgs_feature(3.4, NOW - timedelta(days=40), "older"),
            {"type": "Feature"},
        ]})
        profile = asyncio.run(self._model(fake).assess_risk(38.7, -9.1, now=NOW))

        assert profile.event_count == 2
        assert profile.max_magnitude == 7.0
        assert [e.place for e in profile.recent_events] == ["fresh", "older"]
        assert profile.risk_score > 15.05

    def test_http_error_status(self):
        fake = FakeUpstreams().add(USGS_HOST, "/", {"error": "busy"}, status=503)
        with pytest.raises(PartialDataUnavailable) as info:
            asyncio.run(self._model(fake).assess_risk(1.0, 2.0, now=NOW))
        assert info.value.source == "usgs"
        assert info.value.details["status"] == 503

    def test_transport_error(self):
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fake = FakeUpstreams().add(USGS_HOST, "/", handler=boom)
        with pytest.raises(PartialDataUnavailable):
            asyncio.run(self._model(fake).assess_risk(1.0, 2.0, now=NOW))

    def test_out_of_range_timestamp(self):
        feature = usgs_feature(5.0, NOW)
        feature["properties"]["time"] = 1e20
        fake = FakeUpstreams().add(USGS_HOST, "/", {"features": [feature]})
        with pytest.raises(PartialDataUnavailable) as info:
            asyncio.run(self._model(fake).assess_risk(1.0, 2.0, now=NOW))
        assert info.value.source == "usgs"

    def test_magnitude_beyond_float_range(self):
        fake = FakeUpstreams().add(USGS_HOST, "/", {"features": [usgs_feature(1e300, NOW)]})
        with pytest.raises(PartialDataUnavailable) as info:
            asyncio.run(self._model(fake).assess_risk(1.0, 2.0, now=NOW))
        assert info.value.source == "usgs"
