"""
FastAPI route: city environment report.

Endpoints:
    GET  /weather                    — Report for ?city=...&date=...
    GET  /api/v1/weather/report      — Same handler under the versioned prefix

``date`` accepts DD-MM-YYYY or YYYY-MM-DD; without it the current
conditions are reported. The response echoes the date as DD-MM-YYYY.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from livability.app.aggregation.models import LocationQuery
from livability.app.aggregation.weather_aggregator import WeatherAggregator
from livability.app.api.deps import get_aggregator

router = APIRouter(tags=["weather"])


@router.get("/weather")
@router.get("/api/v1/weather/report")
async def get_city_report(
    city: Optional[str] = Query(None, description="City name", examples=["Lisbon"]),
    date: Optional[str] = Query(None, description="DD-MM-YYYY or YYYY-MM-DD"),
    aggregator: WeatherAggregator = Depends(get_aggregator),
) -> Dict[str, Any]:
    """
    Weather, proxy scores, comfort index, statistics and seismic risk for
    one city. Optional sections are omitted when their upstream failed.
    """
    query = LocationQuery.parse(city, date)
    return await aggregator.report_payload(query.city, query.date)
