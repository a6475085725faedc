"""
FastAPI earthquake risk endpoint.

Endpoints:
    GET  /api/v1/earthquake/risk   — Decayed-energy seismic risk for a point
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from livability.app.api.deps import get_seismic_model
from livability.app.api.schemas import SeismicRiskResponse
from livability.app.scoring.seismic_risk import SeismicRiskModel

router = APIRouter(prefix="/api/v1/earthquake", tags=["earthquake-risk"])


@router.get("/risk", response_model=SeismicRiskResponse)
async def get_seismic_risk(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0, le=20000, description="Default SEISMIC_RADIUS_KM"),
    period_years: Optional[int] = Query(None, ge=1, le=50, description="Default SEISMIC_PERIOD_YEARS"),
    model: SeismicRiskModel = Depends(get_seismic_model),
):
    """
    Score M3.0+ events within ``radius_km`` over the last ``period_years``.

    0 means no qualifying events; one fresh M7 scores about 15. A failed
    USGS query is a 502 here, unlike the report endpoint which drops the
    seismic fields.
    """
    radius = radius_km if radius_km is not None else model.settings.SEISMIC_RADIUS_KM
    years = period_years if period_years is not None else model.settings.SEISMIC_PERIOD_YEARS
    profile = await model.assess_risk(latitude, longitude, radius, years)
    return {
        "latitude": latitude,
        "longitude": longitude,
        "radius_km": radius,
        "period_years": years,
        **profile.to_dict(),
    }
