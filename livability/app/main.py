"""
FastAPI application entry point.

Run with:
    uvicorn livability.app.main:app --reload --port 3001

Or from the project root:
    python -m uvicorn livability.app.main:app --reload
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ── Core infrastructure ──
from livability.app.core.config import Settings, get_settings
from livability.app.core.logging_config import setup_logging, get_logger
from livability.app.core.errors import register_error_handlers
from livability.app.core.middleware import RequestLoggingMiddleware

# ── Services ──
from livability.app.ai.gemini_client import GeminiClient
from livability.app.aggregation.advice_composer import AdviceComposer
from livability.app.aggregation.weather_aggregator import WeatherAggregator

# ── API routers ──
from livability.app.api.v1.weather import router as weather_router
from livability.app.api.v1.advice import router as advice_router
from livability.app.api.v1.earthquake import router as earthquake_router

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the application.

    ``transport`` is handed to the shared httpx.AsyncClient; tests pass an
    httpx.MockTransport to fake every upstream at once.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    # ── Application lifespan (startup / shutdown) ──

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting %s v%s [%s]",
            settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
        )
        if not settings.VISUAL_CROSSING_KEY:
            logger.warning("VISUAL_CROSSING_KEY is not set; weather requests will fail upstream")
        if not settings.has_generation_credentials:
            logger.info("GEMINI_API_KEY not set; reports are served without ai_forecast")

        client = httpx.AsyncClient(transport=transport)
        text_generator = GeminiClient(settings, client)
        aggregator = WeatherAggregator(settings, client, text_generator=text_generator)

        app.state.settings = settings
        app.state.text_generator = text_generator
        app.state.aggregator = aggregator
        app.state.seismic_model = aggregator.seismic
        app.state.advice_composer = AdviceComposer(
            text_generator, word_limit=settings.ADVICE_WORD_LIMIT,
        )
        yield
        await aggregator.close()
        await client.aclose()
        logger.info("Shutting down %s", settings.APP_NAME)

    # ── Create application ──

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "City livability reports. Combines live weather from Visual Crossing, "
            "country and city statistics from REST Countries, World Bank and "
            "Nominatim, and USGS seismic history into a 0–100 comfort index, "
            "with optional generated forecasts and improvement suggestions."
        ),
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ── Middleware stack (last added runs outermost) ──

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS if not settings.CORS_ALLOW_ALL else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # ── Error handlers ──
    register_error_handlers(app, settings)

    # ── Register routers ──
    app.include_router(weather_router)
    app.include_router(advice_router)
    app.include_router(earthquake_router)

    # ── Root & health endpoints ──

    @app.get("/", tags=["root"])
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "endpoints": [
                "/weather",
                "/api/v1/weather/report",
                "/api/v1/earthquake/risk",
                "/improve",
                "/ask",
            ],
            "docs": "/docs",
        }

    @app.get("/health/live", tags=["health"])
    async def liveness():
        """Liveness probe — is the process alive?"""
        return {"status": "alive"}

    return app


app = create_app()
