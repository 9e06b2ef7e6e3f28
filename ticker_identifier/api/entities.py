from __future__ import annotations

from fastapi import APIRouter, Depends

from ticker_identifier.api.deps import get_extraction_service
from ticker_identifier.api.errors import service_error_handler
from ticker_identifier.modules.extraction.service import EntityExtractionService
from ticker_identifier.schemas import ExtractEntitiesRequest, ExtractEntitiesResponse

router = APIRouter(prefix="/api", tags=["entities"])


@router.post("/extract-entities", response_model=ExtractEntitiesResponse)
@service_error_handler(failure_detail="Failed to extract entities from query")
async def extract_entities(
    payload: ExtractEntitiesRequest,
    service: EntityExtractionService = Depends(get_extraction_service),
) -> ExtractEntitiesResponse:
    if not payload.query or not payload.query.strip():
        raise ValueError("Invalid query parameter")
    entities = await service.extract_raw(
        payload.query, provider_id=payload.provider_id, language=payload.language
    )
    return ExtractEntitiesResponse(entities=entities)
