"""Async client wrapper for an OpenAI-compatible chat endpoint."""

import logging
import time

from openai import AsyncOpenAI

from poster_enrichment.config import settings

logger = logging.getLogger(__name__)


class LLMClient:
    """Single-turn chat completions against the configured gateway.

    Requires an API key; construct only when ``settings.llm_api_key`` (or an
    explicit key) is available.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self._client = AsyncOpenAI(
            base_url=base_url or settings.llm_base_url,
            api_key=api_key or settings.llm_api_key,
        )
        self._model = model or settings.model_research
        self._max_tokens = max_tokens or settings.llm_max_tokens

    async def complete(self, prompt: str) -> str:
        """Send one user message and return the text of the first choice."""
        start_time = time.time()
        response = await self._client.chat.completions.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=0.1,
            messages=[{"role": "user", "content": prompt}],
        )

        if settings.log_api_calls:
            elapsed = (time.time() - start_time) * 1000  # ms
            logger.info("[LLM] %s (%.0fms)", self._model, elapsed)

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
