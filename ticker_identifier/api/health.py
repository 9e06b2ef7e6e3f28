"""Health and UI options routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ticker_identifier.api.deps import get_config_store
from ticker_identifier.core.types import GEOGRAPHIES, LANGUAGES
from ticker_identifier.schemas import UIOptionsResponse
from ticker_identifier.services.config_store import ConfigStore

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/options/ui", response_model=UIOptionsResponse)
async def ui_options(
    config_store: ConfigStore = Depends(get_config_store),
) -> UIOptionsResponse:
    config = config_store.load()
    return UIOptionsResponse(
        geographies=list(GEOGRAPHIES),
        languages=list(LANGUAGES),
        extraction_providers=sorted(config.extraction_provider_map().keys()),
        default_extraction_provider=config.extraction.default_provider,
        corpus_providers=["fmp", "file"],
    )
