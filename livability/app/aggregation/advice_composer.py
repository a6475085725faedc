"""
advice_composer.py — short city-improvement suggestions.

The generated text is capped at a fixed number of whitespace-delimited
words (50 by default). The cap is structural: the text is split on any
whitespace (spaces, tabs, newlines), the first N tokens are kept and joined
with single spaces. It does not look for sentence boundaries, so a capped
answer can stop mid-sentence. That is the expected output, not a defect.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from livability.app.ai.gemini_client import TextGenerator

logger = logging.getLogger(__name__)

DEFAULT_WORD_LIMIT = 50


def cap_words(text: str, limit: int = DEFAULT_WORD_LIMIT) -> str:
    """
    Keep the first ``limit`` whitespace-delimited words.

    >>> cap_words("one\\ttwo\\n three", limit=2)
    'one two'
    """
    words = text.split()
    if len(words) <= limit:
        return text
    return " ".join(words[:limit])


def build_advice_prompt(
    city: str,
    date: Optional[str],
    metrics: Optional[Mapping[str, Any]],
    limit: int = DEFAULT_WORD_LIMIT,
) -> str:
    rendered = json.dumps(dict(metrics or {}), ensure_ascii=False, default=str, sort_keys=True)
    return (
        "Short answer.\n"
        f"No more than {limit} words. Provide practical, non-political, "
        f"community-driven suggestions to improve the city '{city}' "
        f"(date={date or ''}). Use the following metrics and propose "
        "infrastructure, environment, safety and public service improvements.\n"
        f"Metrics:\n{rendered}\n\n"
        "Respond concisely."
    )


class AdviceComposer:
    """
    Usage:
        composer = AdviceComposer(gemini)
        text = await composer.compose("Porto", "18-10-2026", {"air_purity": 42})
    """

    def __init__(self, text_generator: TextGenerator, word_limit: int = DEFAULT_WORD_LIMIT):
        self.text_generator = text_generator
        self.word_limit = word_limit

    async def compose(
        self,
        city: str,
        date: Optional[str] = None,
        metrics: Optional[Mapping[str, Any]] = None,
    ) -> str:
        prompt = build_advice_prompt(city, date, metrics, self.word_limit)
        # Empty instruction: the generator's default city-improvement persona applies.
        reply = await self.text_generator.generate_text("", prompt)
        if len(reply.split()) > self.word_limit:
            logger.info("Advice for %s truncated to %d words", city, self.word_limit)
        return cap_words(reply, self.word_limit)
