from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ticker_identifier.config import AppConfig, ExtractionProviderConfig
from ticker_identifier.core.contracts import EntityExtractionProvider
from ticker_identifier.core.errors import ExtractionError
from ticker_identifier.core.registry import ProviderRegistry
from ticker_identifier.core.types import ExtractedEntity
from ticker_identifier.modules.extraction.parser import parse_extracted_entities
from ticker_identifier.modules.extraction.prompt_builder import (
    build_extraction_prompt,
    extract_relevant_response,
)
from ticker_identifier.modules.extraction.providers.mock_provider import (
    MockExtractionProvider,
)
from ticker_identifier.modules.extraction.providers.openai_compatible_provider import (
    OpenAICompatibleExtractionProvider,
)
from ticker_identifier.settings import AppSettings

logger = logging.getLogger(__name__)


class EntityExtractionService:
    MODULE_NAME = "extraction"

    def __init__(
        self,
        config: AppConfig,
        registry: ProviderRegistry,
        settings: Optional[AppSettings] = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.settings = settings or AppSettings()
        # Factories are keyed by provider type; one instance is built per call.
        self.registry.register_default(
            self.MODULE_NAME, "openai_compatible", self._build_openai_compatible
        )
        self.registry.register_default(self.MODULE_NAME, "mock", self._build_mock)

    def _build_openai_compatible(self, provider_config: ExtractionProviderConfig):
        return OpenAICompatibleExtractionProvider(provider_config=provider_config)

    def _build_mock(self, provider_config: ExtractionProviderConfig):
        return MockExtractionProvider()

    def select_provider(
        self, provider_id: Optional[str] = None
    ) -> Tuple[ExtractionProviderConfig, Optional[str]]:
        requested = (provider_id or self.config.extraction.default_provider or "").strip().lower()
        provider_map = self.config.extraction_provider_map()
        order: List[str] = []
        for candidate in [requested, *self.config.extraction.fallback_order]:
            if candidate and candidate not in order:
                order.append(candidate)

        for candidate in order:
            provider_config = provider_map.get(candidate)
            if provider_config is None:
                continue
            api_key = self.settings.credential(provider_config.api_key_setting)
            if provider_config.api_key_setting and not api_key:
                continue
            if candidate != requested:
                logger.warning(
                    "extraction provider %s unavailable, falling back to %s",
                    requested or "<default>",
                    candidate,
                )
            return provider_config, api_key
        raise ExtractionError("No API key configured")

    async def extract_raw(
        self,
        query: str,
        provider_id: Optional[str] = None,
        language: Optional[str] = None,
    ) -> str:
        if not query or not query.strip():
            raise ExtractionError("Invalid query parameter")
        provider_config, api_key = self.select_provider(provider_id)
        provider: EntityExtractionProvider = self.registry.resolve(
            self.MODULE_NAME, provider_config.type, provider_config=provider_config
        )
        prompt = build_extraction_prompt(query, language=language)
        try:
            full_response = await provider.extract(prompt, api_key=api_key)
        except ExtractionError:
            raise
        except Exception as exc:
            logger.warning(
                "extraction provider %s failed: %s", provider_config.provider_id, exc
            )
            raise ExtractionError("Failed to extract entities from query") from exc
        entities_text = extract_relevant_response(full_response, query)
        logger.info("extracted entity text=%r provider=%s", entities_text, provider_config.provider_id)
        return entities_text

    async def extract_entities(
        self,
        query: str,
        provider_id: Optional[str] = None,
        language: Optional[str] = None,
    ) -> List[ExtractedEntity]:
        entities_text = await self.extract_raw(query, provider_id=provider_id, language=language)
        if not entities_text.strip():
            return []
        entities = parse_extracted_entities(entities_text)
        logger.info("parsed %d entities from oracle output", len(entities))
        return entities
