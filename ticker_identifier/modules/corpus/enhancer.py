"""Derive search metadata (acronyms, name words, search terms) for securities."""

from __future__ import annotations

import re
from typing import Iterable, List

from ticker_identifier.core.types import EnhancedSecurity, Security

STOP_WORDS = frozenset(
    {
        "inc",
        "corp",
        "ltd",
        "limited",
        "co",
        "company",
        "the",
        "and",
        "of",
        "group",
        "holdings",
        "plc",
    }
)

_CAPITALS_RE = re.compile(r"[A-Z]")
_PARENTHESES_RE = re.compile(r"\(([^)]+)\)")
_TRAILING_SUFFIX_RE = re.compile(r"\.([A-Z]+)$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_WHITESPACE_RE = re.compile(r"\s+")
_SYMBOL_MARKET_SUFFIX_RE = re.compile(r"\.(SS|HK|TW|US)$", re.IGNORECASE)


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(value for value in values if value))


def extract_acronyms(name: str) -> List[str]:
    acronyms: List[str] = []
    words = name.split()

    if len(words) > 1:
        initials = "".join(word[0] for word in words).upper()
        if len(initials) > 1:
            acronyms.append(initials)

    # PepsiCo -> PC
    capitals = _CAPITALS_RE.findall(name)
    if len(capitals) > 1:
        acronyms.append("".join(capitals))

    parenthesized = _PARENTHESES_RE.search(name)
    if parenthesized and parenthesized.group(1):
        acronyms.append(parenthesized.group(1))

    meaningful = [word for word in words if len(word) > 2 and word.lower() not in STOP_WORDS]
    if len(meaningful) > 1:
        first_letters = "".join(word[0] for word in meaningful).upper()
        if len(first_letters) > 1:
            acronyms.append(first_letters)
        acronyms.extend(word[:2].upper() for word in meaningful)
        acronyms.extend((word[0] + word[-1]).upper() for word in meaningful)

    suffix = _TRAILING_SUFFIX_RE.search(name)
    if suffix and suffix.group(1):
        acronyms.append(suffix.group(1))

    return _unique(acronyms)


def extract_name_words(name: str) -> List[str]:
    return [
        word
        for word in name.lower().split()
        if len(word) > 1 and word not in STOP_WORDS
    ]


def clean_term(value: str) -> str:
    """Lower-case and strip everything except ASCII letters and digits."""
    return _NON_ALNUM_RE.sub("", _WHITESPACE_RE.sub("", value.lower()))


def build_search_terms(security: Security, acronyms: List[str], name_words: List[str]) -> List[str]:
    lower_name = security.name.lower()
    lower_symbol = security.symbol.lower()
    return _unique(
        [
            lower_name,
            *name_words,
            *(acronym.lower() for acronym in acronyms),
            _NON_ALNUM_RE.sub("", lower_name),
            _WHITESPACE_RE.sub("", lower_name),
            lower_symbol,
            _SYMBOL_MARKET_SUFFIX_RE.sub("", lower_symbol),
        ]
    )


def enhance_security(security: Security) -> EnhancedSecurity:
    acronyms = extract_acronyms(security.name)
    name_words = extract_name_words(security.name)
    search_terms = build_search_terms(security, acronyms, name_words)
    return EnhancedSecurity(
        symbol=security.symbol,
        name=security.name,
        exchange=security.exchange,
        exchange_short_name=security.exchange_short_name,
        type=security.type,
        acronyms=tuple(acronyms),
        name_words=tuple(name_words),
        search_terms=tuple(search_terms),
    )


def enhance_securities(securities: Iterable[Security]) -> List[EnhancedSecurity]:
    return [enhance_security(security) for security in securities]
