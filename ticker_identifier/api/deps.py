"""FastAPI dependency factories for service injection."""

from __future__ import annotations

from fastapi import Request

from ticker_identifier.config import AppConfig
from ticker_identifier.core.registry import ProviderRegistry
from ticker_identifier.modules.corpus.service import SecurityCorpusService
from ticker_identifier.modules.extraction.service import EntityExtractionService
from ticker_identifier.modules.resolution.service import TickerResolutionService
from ticker_identifier.services.config_store import ConfigStore
from ticker_identifier.settings import AppSettings


def get_config_store(request: Request) -> ConfigStore:
    return request.app.state.config_store


def get_extraction_service(request: Request) -> EntityExtractionService:
    return request.app.state.extraction_service


def get_corpus_service(request: Request) -> SecurityCorpusService:
    return request.app.state.corpus_service


def get_resolution_service(request: Request) -> TickerResolutionService:
    return request.app.state.resolution_service


def build_services(
    config: AppConfig,
    settings: AppSettings,
    registry: ProviderRegistry | None = None,
) -> TickerResolutionService:
    """Wire the long-lived services; the corpus service owns the in-memory cache."""
    reg = registry or ProviderRegistry()
    extraction_service = EntityExtractionService(config=config, registry=reg, settings=settings)
    corpus_service = SecurityCorpusService(config=config, registry=reg, settings=settings)
    return TickerResolutionService(
        config=config,
        registry=reg,
        settings=settings,
        extraction_service=extraction_service,
        corpus_service=corpus_service,
    )
