from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ticker_identifier.api.deps import get_corpus_service
from ticker_identifier.api.errors import service_error_handler
from ticker_identifier.modules.corpus.schemas import (
    CacheClearResponse,
    CacheStatus,
    StockListResponse,
)
from ticker_identifier.modules.corpus.service import SecurityCorpusService

router = APIRouter(prefix="/api", tags=["stock-list"])


@router.get("/stock-list", response_model=StockListResponse)
@service_error_handler(failure_detail="Failed to fetch stock list")
async def stock_list(
    refresh: bool = Query(False),
    service: SecurityCorpusService = Depends(get_corpus_service),
) -> StockListResponse:
    securities = await service.get_securities(force_refresh=refresh)
    return StockListResponse(stocks=securities)


@router.get("/stock-list/status", response_model=CacheStatus)
async def stock_list_status(
    service: SecurityCorpusService = Depends(get_corpus_service),
) -> CacheStatus:
    return service.cache_status()


@router.delete("/stock-list/cache", response_model=CacheClearResponse)
async def clear_stock_list_cache(
    service: SecurityCorpusService = Depends(get_corpus_service),
) -> CacheClearResponse:
    removed = service.clear_cache()
    return CacheClearResponse(cleared=True, snapshots_removed=removed)
