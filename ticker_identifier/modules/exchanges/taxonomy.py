"""Canonical exchange keys, their synonyms and listing membership tests.

Securities coming from the reference corpus name their venue in several
ways at once: a short code (``HKSE``), a long name (``Hong Kong Stock
Exchange``) and often a symbol suffix (``0700.HK``).  Everything here maps
those spellings back onto a small set of canonical keys.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from ticker_identifier.core.types import Security

logger = logging.getLogger(__name__)

ALL_EXCHANGES = "all"

# Insertion order matters: synonym lookups return the first key that matches.
EXCHANGE_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "NYSE": ("NYSE", "New York Stock Exchange", "NYQ", "NYSEAMERICAN", "NYSEARCA"),
    "NASDAQ": (
        "NASDAQ",
        "NASDAQ Global Select",
        "NASDAQ Global Market",
        "NASDAQ Capital Market",
        "NMS",
        "NGM",
        "NCM",
    ),
    "HKEX": ("HKEX", "HK", "HKSE", "Hong Kong Stock Exchange", "SEHK"),
    "HKSE": ("HKSE", "HKEX", "HK", "Hong Kong Stock Exchange", "SEHK"),
    "SSE": ("SSE", "Shanghai Stock Exchange", "SHA", "SH"),
    "SHH": ("SHH", "Shanghai", "SS"),
    "SZSE": ("SZSE", "Shenzhen Stock Exchange", "SHE", "SZ"),
    "LSE": ("LSE", "London Stock Exchange", "LON"),
}

HONG_KONG_KEYS = frozenset({"HKEX", "HKSE"})

GEOGRAPHY_EXCHANGES: Dict[str, Tuple[str, ...]] = {
    "us": ("NYSE", "NASDAQ"),
    "hk": ("HKEX", "HKSE"),
    "china": ("SSE", "SZSE", "SHH"),
    "global": (),
}


def find_canonical_exchange_key(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    if text in EXCHANGE_SYNONYMS:
        return text
    upper = text.strip().upper()
    for key, synonyms in EXCHANGE_SYNONYMS.items():
        if any(synonym.upper() == upper for synonym in synonyms):
            return key
    return None


def are_exchanges_equivalent(first: Optional[str], second: Optional[str]) -> bool:
    if not first or not second:
        return False
    first_key = find_canonical_exchange_key(first)
    second_key = find_canonical_exchange_key(second)
    if first_key and second_key and first_key == second_key:
        return True
    if first_key and _in_synonyms(first_key, second):
        return True
    if second_key and _in_synonyms(second_key, first):
        return True
    return {first.upper(), second.upper()} == set(HONG_KONG_KEYS)


def preferred_exchanges(geography: str) -> Tuple[str, ...]:
    return GEOGRAPHY_EXCHANGES.get((geography or "").strip().lower(), ())


def is_stock_from_exchange(security: Security, exchange_key: Optional[str]) -> bool:
    if not exchange_key or exchange_key == ALL_EXCHANGES:
        return True

    canonical_key = find_canonical_exchange_key(exchange_key)
    if canonical_key is None:
        logger.debug(
            "no canonical key for %s, comparing %s directly", exchange_key, security.symbol
        )
        return (
            security.exchange_short_name == exchange_key
            or security.exchange == exchange_key
            or security.symbol.endswith(f".{exchange_key}")
        )

    if _in_synonyms(canonical_key, security.exchange_short_name):
        return True
    if _in_synonyms(canonical_key, security.exchange):
        return True
    return _symbol_has_exchange_suffix(security.symbol, canonical_key)


def stock_matches_geography(security: Security, geography: str) -> bool:
    exchanges = preferred_exchanges(geography)
    if not exchanges:
        return True
    return any(is_stock_from_exchange(security, exchange) for exchange in exchanges)


def _in_synonyms(canonical_key: str, value: Optional[str]) -> bool:
    if not value:
        return False
    upper = value.upper()
    synonyms = EXCHANGE_SYNONYMS.get(canonical_key, ())
    if any(synonym.upper() == upper for synonym in synonyms):
        return True
    # HKEX and HKSE name the same venue even where a table omits the other.
    return canonical_key in HONG_KONG_KEYS and upper in HONG_KONG_KEYS


def _symbol_has_exchange_suffix(symbol: str, canonical_key: str) -> bool:
    if not symbol:
        return False
    upper_symbol = symbol.upper()
    if canonical_key in HONG_KONG_KEYS:
        return upper_symbol.endswith(".HK")
    for synonym in EXCHANGE_SYNONYMS.get(canonical_key, ()):
        # Multi-word names contribute their first word as the suffix code.
        code = synonym.split(" ")[0].upper()
        if upper_symbol.endswith(f".{code}") or upper_symbol.endswith(f":{code}"):
            return True
    return False
