from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ticker_identifier.core.types import ExtractedEntity, Geography, Language, TickerGroup
from ticker_identifier.modules.prioritization.schemas import SelectionSet, TickerDebugInfo


class ResolutionResult(SelectionSet):
    query: str
    geography: str
    language: Optional[str] = None
    entities: List[ExtractedEntity] = Field(default_factory=list)
    groups: List[TickerGroup] = Field(default_factory=list)


class TickersRequest(BaseModel):
    query: str
    geography: Geography = "us"
    language: Language = "english"
    provider_id: Optional[str] = None


class TickersResponse(BaseModel):
    groups: List[TickerGroup] = Field(default_factory=list)
    tickers: List[str] = Field(default_factory=list)


class TickerDebugResponse(BaseModel):
    query: Optional[str] = None
    debug: List[TickerDebugInfo] = Field(default_factory=list)
