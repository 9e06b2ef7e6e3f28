"""Score tables and tie-break helpers for choosing one listing per entity.

Exchange ranks approximate market size by venue, not per-security market
capitalization.
"""

from __future__ import annotations

import re
from typing import Dict, Tuple

from ticker_identifier.core.types import Security

MARKET_CAP_RANK: Dict[str, int] = {
    "NYSE": 1,
    "NASDAQ": 2,
    "HKEX": 3,
    "HKSE": 3,
    "LSE": 4,
    "SSE": 5,
    "SHH": 5,
    "SS": 5,
    "SZSE": 6,
    "SZ": 6,
}
UNRANKED = 999

PRIMARY_MARKET_RANK: Dict[str, int] = {
    "NYSE": 3,
    "NASDAQ": 3,
    "HKSE": 3,
    "HKEX": 3,
    "LSE": 2,
    "SSE": 2,
    "SZSE": 2,
}

GLOBAL_DERIVATIVE_MARKERS: Tuple[str, ...] = (
    "etf",
    "etp",
    "tracker",
    "short",
    "long",
    "-1x",
    "-2x",
    "-3x",
)
FALLBACK_DERIVATIVE_MARKERS: Tuple[str, ...] = (
    "tracker",
    "-1x",
    "-2x",
    "-3x",
    "short",
    "etf",
    "etp",
)

EXACT_NAME_SCORE = 10000
STARTS_WITH_SCORE = 5000
WORD_BOUNDARY_SCORE = 3000
CONTAINS_SCORE = 1000

BARE_SYMBOL_SCORE = 3000
GLOBAL_DERIVATIVE_PENALTY = 5000

NAME_TOKEN_SCORE = 500
EXACT_SYMBOL_SCORE = 8000
SYMBOL_PREFIX_SCORE = 2000
US_PRIMARY_SCORE = 500
FALLBACK_DERIVATIVE_PENALTY = 1000


def market_cap_rank(security: Security) -> int:
    return MARKET_CAP_RANK.get(security.exchange_short_name, UNRANKED)


def primary_market_rank(security: Security) -> int:
    return PRIMARY_MARKET_RANK.get(security.exchange_short_name, 0)


def is_exact_name(security: Security, normalized_name: str) -> bool:
    return security.name.lower() == normalized_name


def has_suffix_dot(symbol: str) -> bool:
    return "." in symbol


def name_match_score(stock_name: str, normalized_name: str) -> int:
    if stock_name == normalized_name:
        return EXACT_NAME_SCORE
    if stock_name.startswith(normalized_name + " "):
        return STARTS_WITH_SCORE
    if re.search(rf"\b{re.escape(normalized_name)}\b", stock_name):
        return WORD_BOUNDARY_SCORE
    if normalized_name in stock_name:
        return CONTAINS_SCORE
    return 0


def _has_marker(stock_name: str, markers: Tuple[str, ...]) -> bool:
    return any(marker in stock_name for marker in markers)


def global_score(security: Security, normalized_name: str) -> int:
    stock_name = security.name.lower()
    score = name_match_score(stock_name, normalized_name)
    if not has_suffix_dot(security.symbol):
        score += BARE_SYMBOL_SCORE
    score += 1000 - market_cap_rank(security) * 100
    if _has_marker(stock_name, GLOBAL_DERIVATIVE_MARKERS):
        score -= GLOBAL_DERIVATIVE_PENALTY
    return score


def fallback_score(security: Security, normalized_name: str) -> int:
    stock_name = security.name.lower()
    stock_symbol = security.symbol.lower()
    score = name_match_score(stock_name, normalized_name)
    if normalized_name in stock_name.split():
        score += NAME_TOKEN_SCORE
    if stock_symbol == normalized_name:
        score += EXACT_SYMBOL_SCORE
    elif stock_symbol.startswith(normalized_name[:2]):
        score += SYMBOL_PREFIX_SCORE
    if security.exchange_short_name in ("NYSE", "NASDAQ"):
        score += US_PRIMARY_SCORE
    if _has_marker(stock_name, FALLBACK_DERIVATIVE_MARKERS):
        score -= FALLBACK_DERIVATIVE_PENALTY
    return score


def prefers_geography_suffix(symbol: str, geography: str) -> bool:
    if geography == "hk":
        return symbol.endswith(".HK")
    if geography == "us":
        return not has_suffix_dot(symbol)
    if geography == "china":
        return symbol.endswith(".SS") or symbol.endswith(".SZ")
    return False
