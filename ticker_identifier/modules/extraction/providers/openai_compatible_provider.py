from __future__ import annotations

import logging
from typing import Optional

from openai import AsyncOpenAI

from ticker_identifier.config import ExtractionProviderConfig
from ticker_identifier.core.errors import ExtractionError

logger = logging.getLogger(__name__)


class OpenAICompatibleExtractionProvider:
    """Chat-completions oracle for OpenAI, OpenRouter, DeepSeek and similar APIs."""

    def __init__(self, provider_config: ExtractionProviderConfig) -> None:
        self.provider_config = provider_config
        self.provider_id = provider_config.provider_id

    async def extract(self, prompt: str, api_key: Optional[str] = None) -> str:
        if not api_key:
            raise ExtractionError("No API key configured")

        client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.provider_config.base_url,
            timeout=self.provider_config.timeout,
            default_headers=self.provider_config.extra_headers or None,
        )
        logger.info(
            "calling extraction provider=%s model=%s",
            self.provider_id,
            self.provider_config.model,
        )
        response = await client.chat.completions.create(
            model=self.provider_config.model,
            temperature=self.provider_config.temperature,
            max_tokens=self.provider_config.max_tokens,
            stop=self.provider_config.stop or None,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.choices or response.choices[0].message is None:
            raise ExtractionError("Unexpected API response format")
        return (response.choices[0].message.content or "").strip()
