"""
FastAPI routes: text generation.

Endpoints:
    POST /improve   — Short improvement suggestions for a city (≤ 50 words)
    POST /ask       — Free-form prompt with an optional system instruction

Generation failures (missing key, upstream error) surface as 502
GENERATION_FAILURE through the shared error handlers.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from livability.app.ai.gemini_client import TextGenerator
from livability.app.aggregation.advice_composer import AdviceComposer
from livability.app.api.deps import get_advice_composer, get_text_generator
from livability.app.api.schemas import AskRequest, AskResponse, ImproveRequest, ImproveResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["advice"])


@router.post("/improve", response_model=ImproveResponse)
async def improve_city(
    req: ImproveRequest,
    composer: AdviceComposer = Depends(get_advice_composer),
):
    suggestions = await composer.compose(req.city, req.date, req.weather)
    return ImproveResponse(suggestions=suggestions)


@router.post("/ask", response_model=AskResponse)
async def ask(
    req: AskRequest,
    generator: TextGenerator = Depends(get_text_generator),
):
    reply = await generator.generate_text(req.instruction, req.prompt)
    return AskResponse(reply=reply)
