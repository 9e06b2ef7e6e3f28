from __future__ import annotations

from fastapi import APIRouter, Depends

from ticker_identifier.api.deps import get_resolution_service
from ticker_identifier.api.errors import service_error_handler
from ticker_identifier.modules.resolution.schemas import (
    TickerDebugResponse,
    TickersRequest,
    TickersResponse,
)
from ticker_identifier.modules.resolution.service import TickerResolutionService

router = APIRouter(prefix="/api", tags=["tickers"])


@router.post("/tickers", response_model=TickersResponse)
@service_error_handler(failure_detail="Failed to extract tickers")
async def extract_tickers(
    payload: TickersRequest,
    service: TickerResolutionService = Depends(get_resolution_service),
) -> TickersResponse:
    result = await service.extract_tickers(
        payload.query,
        geography=payload.geography,
        language=payload.language,
        provider_id=payload.provider_id,
    )
    return TickersResponse(groups=result.groups, tickers=result.tickers)


@router.get("/tickers/debug", response_model=TickerDebugResponse)
async def tickers_debug(
    service: TickerResolutionService = Depends(get_resolution_service),
) -> TickerDebugResponse:
    result = service.last_result
    if result is None:
        return TickerDebugResponse()
    return TickerDebugResponse(
        query=result.query, debug=[selection.debug for selection in result.selections]
    )
