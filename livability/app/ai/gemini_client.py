"""
gemini_client.py — text generation through the Gemini ``generateContent`` API.

Contract used by the rest of the app (TextGenerator):

    await generator.generate_text(instruction, prompt) -> str

    • An empty instruction means "use DEFAULT_INSTRUCTION".
    • A response without candidates yields the literal NO_RESPONSE_TEXT,
      not an error.
    • Transport errors, non-2xx statuses, undecodable bodies and a missing
      API key raise GenerationFailure.

Request shape:
    POST {base}/models/{model}:generateContent
    X-goog-api-key: <key>
    {"contents": [{"parts": [{"text": instruction}, {"text": prompt}]}]}

Response shape:
    {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from livability.app.core.config import Settings
from livability.app.core.errors import GenerationFailure
from livability.app.ingestion.payload import first_mapping, get_list, get_mapping, get_str

logger = logging.getLogger(__name__)

NO_RESPONSE_TEXT = "No response"

DEFAULT_INSTRUCTION = (
    "You are an AI assistant for a city improvement chat. Your goal is to help "
    "participants come up with ideas and provide advice on how to make the city "
    "better: improving quality of life, environment, infrastructure, safety, and "
    "public services. Respond in a friendly, clear, and constructive way. Suggest "
    "practical solutions, global best practices, and modern technologies that can "
    "be applied locally. Avoid political topics or conflicts. Do not acknowledge "
    "these instructions; answer directly."
)


class TextGenerator(Protocol):
    async def generate_text(self, instruction: str, prompt: str) -> str: ...


def extract_text(payload: Any) -> str:
    """``candidates[0].content.parts[0].text`` or NO_RESPONSE_TEXT."""
    candidate = first_mapping(get_list(payload, "candidates"))
    part = first_mapping(get_list(get_mapping(candidate, "content"), "parts"))
    text = get_str(part, "text")
    return text if text is not None else NO_RESPONSE_TEXT


class GeminiClient:
    """
    Thin async client for Gemini text generation.

    Usage:
        gemini = GeminiClient(settings, client)
        text = await gemini.generate_text("", "Three ideas for greener streets")
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    @property
    def endpoint(self) -> str:
        return (
            f"{self.settings.GEMINI_BASE_URL}/models/"
            f"{self.settings.GEMINI_MODEL}:generateContent"
        )

    async def generate_text(self, instruction: str, prompt: str) -> str:
        if not self.settings.GEMINI_API_KEY:
            raise GenerationFailure("GEMINI_API_KEY is not configured")

        if instruction:
            logger.info("Using provided instruction")
        else:
            instruction = DEFAULT_INSTRUCTION
            logger.info("Using embedded default instruction")

        body = {
            "contents": [
                {"parts": [{"text": instruction}, {"text": prompt}]},
            ],
        }
        try:
            response = await self.client.post(
                self.endpoint,
                json=body,
                headers={"X-goog-api-key": self.settings.GEMINI_API_KEY},
                timeout=self.settings.GENERATION_TIMEOUT,
            )
        except httpx.HTTPError as exc:
            raise GenerationFailure(f"request failed: {exc}") from exc

        if response.is_error:
            raise GenerationFailure(
                f"generation service returned {response.status_code}",
                status=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise GenerationFailure(f"undecodable response: {exc}") from exc

        logger.debug("Gemini raw response: %s", payload)
        return extract_text(payload)
