from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class UIOptionsResponse(BaseModel):
    geographies: List[str]
    languages: List[str]
    extraction_providers: List[str]
    default_extraction_provider: str
    corpus_providers: List[str] = Field(default_factory=list)


class ExtractEntitiesRequest(BaseModel):
    query: str = ""
    provider_id: Optional[str] = None
    language: Optional[str] = None


class ExtractEntitiesResponse(BaseModel):
    entities: str
