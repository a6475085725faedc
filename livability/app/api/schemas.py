"""
Pydantic schemas for the advice and text-generation endpoints.

Separated from the route handlers so they are reusable across the codebase
(tests, scripts). The report endpoint returns CityEnvironmentReport.to_dict()
directly because its optional fields are omitted rather than nulled.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ImproveRequest(BaseModel):
    """Request body for POST /improve."""
    city: str = Field(..., min_length=1, examples=["Porto"])
    date: Optional[str] = Field(
        default=None,
        description="Free-form date label passed through to the prompt",
        examples=["18-10-2026"],
    )
    weather: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Arbitrary metrics, typically a /weather report",
    )


class AskRequest(BaseModel):
    """Request body for POST /ask."""
    instruction: str = Field(
        default="",
        description="System instruction; empty uses the built-in assistant persona",
    )
    prompt: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ImproveResponse(BaseModel):
    suggestions: str


class AskResponse(BaseModel):
    reply: str


class SeismicEventOut(BaseModel):
    time: Optional[str] = None
    magnitude: float
    place: str = ""


class SeismicRiskResponse(BaseModel):
    latitude: float
    longitude: float
    radius_km: float
    period_years: int
    risk_score: float
    event_count: int
    max_magnitude: float
    recent_events: List[SeismicEventOut] = []
