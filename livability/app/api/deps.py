"""
FastAPI dependencies — hand the per-app service instances to route handlers.

The instances are created once in the application lifespan (main.py) and
stored on ``app.state``; they can be swapped through
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from livability.app.ai.gemini_client import TextGenerator
from livability.app.aggregation.advice_composer import AdviceComposer
from livability.app.aggregation.weather_aggregator import WeatherAggregator
from livability.app.scoring.seismic_risk import SeismicRiskModel


def get_aggregator(request: Request) -> WeatherAggregator:
    return request.app.state.aggregator


def get_advice_composer(request: Request) -> AdviceComposer:
    return request.app.state.advice_composer


def get_text_generator(request: Request) -> TextGenerator:
    return request.app.state.text_generator


def get_seismic_model(request: Request) -> SeismicRiskModel:
    return request.app.state.seismic_model
