from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

Geography = Literal["us", "hk", "china", "global"]
Language = Literal["english", "simplified-chinese", "traditional-chinese"]

GEOGRAPHIES: Tuple[str, ...] = ("us", "hk", "china", "global")
LANGUAGES: Tuple[str, ...] = ("english", "simplified-chinese", "traditional-chinese")


class Security(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    symbol: str
    name: str
    exchange: str = ""
    exchange_short_name: str = Field(default="", alias="exchangeShortName")
    type: str = ""

    @field_validator("symbol", "name", "exchange", "exchange_short_name", "type", mode="before")
    @classmethod
    def _strip(cls, value):
        if value is None:
            return ""
        return str(value).strip()


class EnhancedSecurity(Security):
    """Security plus search metadata derived once per corpus load."""

    acronyms: Tuple[str, ...] = ()
    name_words: Tuple[str, ...] = ()
    search_terms: Tuple[str, ...] = ()


class ExtractedEntity(BaseModel):
    name: str
    symbol: Optional[str] = None
    exchange: Optional[str] = None
    original_text: Optional[str] = None

    @property
    def source_text(self) -> str:
        return self.original_text or self.name


class TickerGroup(BaseModel):
    original_text: str
    tickers: List[str] = Field(default_factory=list)
