from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ticker_identifier.config import AppConfig
from ticker_identifier.core.errors import TickerResolutionError, ValidationError
from ticker_identifier.core.registry import ProviderRegistry
from ticker_identifier.core.types import GEOGRAPHIES, LANGUAGES, ExtractedEntity
from ticker_identifier.modules.corpus.service import SecurityCorpusService
from ticker_identifier.modules.extraction.service import EntityExtractionService
from ticker_identifier.modules.matching.matcher import match_stock_symbols
from ticker_identifier.modules.prioritization.prioritizer import prioritize_by_geography
from ticker_identifier.modules.prioritization.schemas import TickerDebugInfo
from ticker_identifier.modules.resolution.grouping import group_tickers_by_source
from ticker_identifier.modules.resolution.schemas import ResolutionResult
from ticker_identifier.settings import AppSettings

logger = logging.getLogger(__name__)


class TickerResolutionService:
    def __init__(
        self,
        config: AppConfig,
        registry: ProviderRegistry,
        settings: Optional[AppSettings] = None,
        extraction_service: Optional[EntityExtractionService] = None,
        corpus_service: Optional[SecurityCorpusService] = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.settings = settings or AppSettings()
        self.extraction_service = extraction_service or EntityExtractionService(
            config=config, registry=registry, settings=self.settings
        )
        self.corpus_service = corpus_service or SecurityCorpusService(
            config=config, registry=registry, settings=self.settings
        )
        self.last_result: Optional[ResolutionResult] = None

    def _normalize_options(self, geography: Optional[str], language: Optional[str]):
        resolved_geography = (geography or self.config.resolution.default_geography).strip().lower()
        if resolved_geography not in GEOGRAPHIES:
            raise ValidationError(f"Unsupported geography: {geography}")
        resolved_language = (language or self.config.resolution.default_language).strip().lower()
        if resolved_language not in LANGUAGES:
            raise ValidationError(f"Unsupported language: {language}")
        return resolved_geography, resolved_language

    async def extract_tickers(
        self,
        query: str,
        geography: Optional[str] = None,
        language: Optional[str] = None,
        provider_id: Optional[str] = None,
    ) -> ResolutionResult:
        """Run the full pipeline for one query.

        Bad input raises :class:`ValidationError`; any failure after that
        surfaces as a single :class:`TickerResolutionError` with no partial
        result.
        """
        if not query or not query.strip():
            raise ValidationError("Invalid query parameter")
        resolved_geography, resolved_language = self._normalize_options(geography, language)
        self.last_result = None

        try:
            entities = await self.extraction_service.extract_entities(
                query, provider_id=provider_id, language=resolved_language
            )
            result = await self.resolve_entities(
                entities,
                geography=resolved_geography,
                query=query,
                language=resolved_language,
            )
        except TickerResolutionError:
            raise
        except Exception as exc:
            logger.exception("ticker resolution failed for query=%r", query)
            raise TickerResolutionError() from exc
        return result

    async def resolve_entities(
        self,
        entities: List[ExtractedEntity],
        geography: str,
        query: str = "",
        language: Optional[str] = None,
    ) -> ResolutionResult:
        """Match, prioritize and group already-extracted entities."""
        self.last_result = None
        result = ResolutionResult(
            query=query, geography=geography, language=language, entities=list(entities)
        )
        if not entities:
            logger.info("no entities extracted from query=%r", query)
            self.last_result = result
            return result

        index = await self.corpus_service.get_index()
        matches = match_stock_symbols(entities, index, self.config.matching)
        if matches.is_empty:
            logger.info("no candidate securities for %d entities", len(entities))
            self.last_result = result
            return result

        prioritized = prioritize_by_geography(matches, geography)
        result = result.model_copy(
            update={
                "selections": prioritized.selections,
                "groups": group_tickers_by_source(prioritized.selections),
            }
        )
        logger.info("resolved query=%r -> %s", query, result.tickers)
        self.last_result = result
        return result

    def last_entity_map(self) -> Dict[str, ExtractedEntity]:
        if self.last_result is None:
            return {}
        return self.last_result.ticker_entity_map()

    def last_debug_map(self) -> Dict[str, TickerDebugInfo]:
        if self.last_result is None:
            return {}
        return self.last_result.ticker_debug_map()
