from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from ticker_identifier.core.types import ExtractedEntity


class CandidateView(BaseModel):
    symbol: str
    name: str
    exchange: str = ""
    exchange_short_name: str = ""
    match_reason: str = ""


class TickerDebugInfo(BaseModel):
    ticker: str
    entity: str
    exchange: str
    all_matches: List[CandidateView] = Field(default_factory=list)
    selection_reason: str = ""


class TickerSelection(BaseModel):
    entity_index: int
    entity: ExtractedEntity
    ticker: str
    debug: TickerDebugInfo


class SelectionSet(BaseModel):
    """Selected tickers in entity order plus the ticker-keyed side tables."""

    selections: List[TickerSelection] = Field(default_factory=list)

    @property
    def tickers(self) -> List[str]:
        return [selection.ticker for selection in self.selections]

    def ticker_entity_map(self) -> Dict[str, ExtractedEntity]:
        return {selection.ticker: selection.entity for selection in self.selections}

    def ticker_debug_map(self) -> Dict[str, TickerDebugInfo]:
        return {selection.ticker: selection.debug for selection in self.selections}


class PrioritizationResult(SelectionSet):
    geography: str
