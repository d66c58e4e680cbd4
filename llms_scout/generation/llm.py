"""
Text-generation capability: ``complete(prompt, tier) -> text``.

The production implementation talks to Gemini through the ``google-genai``
SDK's native async client. Anything with a matching ``complete`` coroutine
can stand in for it (tests use a scripted fake).
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from google import genai
from google.genai import types

from llms_scout.config import GenerationConfig, ModelTier
from llms_scout.errors import GenerationError

logger = logging.getLogger("LLMSScout.llm")


class TextGenerator(Protocol):
    async def complete(self, prompt: str, *, tier: ModelTier = ModelTier.FAST) -> str: ...


class GeminiGenerator:
    """Gemini client with a fast tier and a larger-output tier."""

    def __init__(self, config: GenerationConfig, client: Optional[genai.Client] = None) -> None:
        self.config = config
        if client is None:
            if config.api_key is None:
                raise GenerationError("No Gemini API key configured (set GEMINI_API_KEY)")
            client = genai.Client(api_key=config.api_key.get_secret_value())
        self._client = client

    def _settings(self, tier: ModelTier) -> tuple[str, int]:
        if tier is ModelTier.LARGE:
            return self.config.large_model, self.config.large_max_tokens
        return self.config.fast_model, self.config.fast_max_tokens

    async def complete(self, prompt: str, *, tier: ModelTier = ModelTier.FAST) -> str:
        model, max_tokens = self._settings(tier)
        logger.debug("Calling %s (%d prompt chars)", model, len(prompt))
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        temperature=self.config.temperature,
                        max_output_tokens=max_tokens,
                    ),
                ),
                timeout=self.config.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GenerationError(f"{model} timed out after {self.config.timeout:.0f}s") from exc
        except Exception as exc:
            raise GenerationError(f"{model} call failed: {exc}") from exc

        text = (response.text or "").strip()
        if not text:
            raise GenerationError(f"{model} returned an empty response")
        return text
