from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ticker_identifier.core.types import Security


class CacheStatus(BaseModel):
    is_cached: bool = False
    timestamp: Optional[float] = None
    stock_count: Optional[int] = None
    cache_age: Optional[str] = None
    is_memory_only: bool = False


class StockListResponse(BaseModel):
    stocks: List[Security] = Field(default_factory=list)


class CacheClearResponse(BaseModel):
    cleared: bool = True
    snapshots_removed: int = 0
