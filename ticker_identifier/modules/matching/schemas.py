from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ticker_identifier.core.types import EnhancedSecurity, ExtractedEntity

REASON_SYMBOL = "Symbol match"
REASON_EXACT_SYMBOL = "Exact symbol"
REASON_ACRONYM = "Acronym match"
REASON_SEARCH_TERM = "Search term match"
REASON_NORMALIZED_NAME = "Normalized name match"
REASON_NAME_CONTAINS = "Name contains"
REASON_FUZZY = "Fuzzy match"


class MatchCandidate(BaseModel):
    security: EnhancedSecurity
    match_reason: str
    fuzzy_distance: Optional[float] = None

    @property
    def symbol(self) -> str:
        return self.security.symbol

    @property
    def is_fuzzy(self) -> bool:
        return self.match_reason == REASON_FUZZY


class EntityMatches(BaseModel):
    entity_index: int
    entity: ExtractedEntity
    candidates: List[MatchCandidate] = Field(default_factory=list)


class MatchResult(BaseModel):
    entities: List[EntityMatches] = Field(default_factory=list)

    def flat_securities(self) -> List[EnhancedSecurity]:
        return [
            candidate.security
            for entity_matches in self.entities
            for candidate in entity_matches.candidates
        ]

    @property
    def is_empty(self) -> bool:
        return not any(entity_matches.candidates for entity_matches in self.entities)
