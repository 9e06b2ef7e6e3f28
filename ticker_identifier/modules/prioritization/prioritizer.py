"""Pick one ticker per entity mention.

Each entity goes through a fixed cascade and stops at the first branch
that yields a ticker:

1. numeric-code fallback when nothing matched the entity directly
2. the exchange the user named explicitly
3. global scoring (match quality, bare symbol, venue rank)
4. the geography's preferred exchanges
5. fallback scoring, or the only candidate left

Every selection carries a :class:`TickerDebugInfo` describing the
candidates and the branch that won.  Results are returned per call; no
state survives between calls.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from ticker_identifier.core.types import ExtractedEntity
from ticker_identifier.modules.exchanges.taxonomy import (
    is_stock_from_exchange,
    preferred_exchanges,
    stock_matches_geography,
)
from ticker_identifier.modules.matching.schemas import (
    EntityMatches,
    MatchCandidate,
    MatchResult,
)
from ticker_identifier.modules.prioritization.scoring import (
    fallback_score,
    global_score,
    has_suffix_dot,
    is_exact_name,
    market_cap_rank,
    prefers_geography_suffix,
    primary_market_rank,
)
from ticker_identifier.modules.prioritization.schemas import (
    CandidateView,
    PrioritizationResult,
    TickerDebugInfo,
    TickerSelection,
)

logger = logging.getLogger(__name__)

_NUMERIC_RE = re.compile(r"^\d+$")
_FUZZY_ALTERNATIVES = 5

REASON_NUMERIC_FALLBACK = "Fuzzy match - no exact match found"
REASON_ONLY_ONE = "Only one match available"
REASON_GLOBAL = "Global setting, sorted by match quality and market cap"


def numeric_code_variants(normalized_name: str) -> List[str]:
    if not _NUMERIC_RE.match(normalized_name):
        return []
    variants = [normalized_name]
    # HK/China codes are often written with leading zeros: 00943 -> 943.
    if normalized_name.startswith("00") and len(normalized_name) >= 4:
        trimmed = normalized_name.lstrip("0")
        if trimmed:
            variants.append(trimmed)
    return variants


def _contains_code(symbol: str, variants: List[str]) -> bool:
    return any(variant in symbol for variant in variants)


def candidate_matches_entity(candidate: MatchCandidate, normalized_name: str) -> bool:
    security = candidate.security
    stock_name = security.name.lower()
    if normalized_name in stock_name:
        return True
    if security.symbol.lower() == normalized_name:
        return True
    if any(acronym.lower() == normalized_name for acronym in security.acronyms):
        return True
    if normalized_name in stock_name.split():
        return True
    if candidate.is_fuzzy:
        # Approximate hits only qualify on name evidence; numeric codes go to the fallback.
        return False
    return _contains_code(security.symbol, numeric_code_variants(normalized_name))


def _view(candidate: MatchCandidate, reason: Optional[str] = None) -> CandidateView:
    security = candidate.security
    return CandidateView(
        symbol=security.symbol,
        name=security.name,
        exchange=security.exchange,
        exchange_short_name=security.exchange_short_name,
        match_reason=reason or candidate.match_reason,
    )


def _select(
    entity_matches: EntityMatches,
    candidate: MatchCandidate,
    views: List[CandidateView],
    context_exchange: str,
    reason: str,
) -> TickerSelection:
    ticker = candidate.symbol
    logger.info("selected %s for %s: %s", ticker, entity_matches.entity.name, reason)
    return TickerSelection(
        entity_index=entity_matches.entity_index,
        entity=entity_matches.entity,
        ticker=ticker,
        debug=TickerDebugInfo(
            ticker=ticker,
            entity=entity_matches.entity.name,
            exchange=context_exchange,
            all_matches=views,
            selection_reason=reason,
        ),
    )


def _numeric_fallback(
    entity_matches: EntityMatches, normalized_name: str, geography: str, context_exchange: str
) -> Optional[TickerSelection]:
    variants = numeric_code_variants(normalized_name)
    if not variants or not entity_matches.candidates:
        return None
    ranked = sorted(
        entity_matches.candidates,
        key=lambda c: (
            not _contains_code(c.symbol, variants),
            not stock_matches_geography(c.security, geography),
            len(c.symbol),
        ),
    )
    alternatives = ranked[:_FUZZY_ALTERNATIVES]
    return _select(
        entity_matches,
        alternatives[0],
        [_view(candidate) for candidate in alternatives],
        context_exchange,
        REASON_NUMERIC_FALLBACK,
    )


def _hk_code_length(symbol: str) -> int:
    code = symbol.split(".")[0]
    return len(code) if code.isdigit() else len(symbol) + 100


def _geography_sort_key(candidate: MatchCandidate, geography: str):
    symbol = candidate.symbol
    if geography == "hk":
        is_hk = symbol.endswith(".HK")
        return (not is_hk, _hk_code_length(symbol) if is_hk else 0)
    if geography == "us":
        return (has_suffix_dot(symbol),)
    if geography == "china":
        return (not (symbol.endswith(".SS") or symbol.endswith(".SZ")),)
    return ()


def resolve_entity(entity_matches: EntityMatches, geography: str) -> Optional[TickerSelection]:
    entity: ExtractedEntity = entity_matches.entity
    normalized_name = entity.name.strip().lower()
    context_exchange = entity.exchange or geography

    matching = [
        candidate
        for candidate in entity_matches.candidates
        if candidate_matches_entity(candidate, normalized_name)
    ]

    if not matching:
        selection = _numeric_fallback(entity_matches, normalized_name, geography, context_exchange)
        if selection is None:
            logger.info("no matching securities for %s", entity.name)
        return selection

    views = [_view(candidate) for candidate in matching]

    if entity.exchange:
        exchange_code = entity.exchange.lower()
        on_exchange = [c for c in matching if is_stock_from_exchange(c.security, entity.exchange)]
        if on_exchange:
            best = sorted(
                on_exchange,
                key=lambda c: (
                    not is_exact_name(c.security, normalized_name),
                    not c.symbol.lower().endswith(f".{exchange_code}"),
                    len(c.symbol),
                ),
            )[0]
            return _select(
                entity_matches,
                best,
                views,
                context_exchange,
                f"User specified exchange: {entity.exchange}",
            )
        logger.info("no listing of %s on requested exchange %s", entity.name, entity.exchange)

    exchanges = preferred_exchanges(geography)
    if geography == "global" or not exchanges:
        scores = {id(c): global_score(c.security, normalized_name) for c in matching}
        ranked = sorted(
            matching,
            key=lambda c: (
                -scores[id(c)],
                not is_exact_name(c.security, normalized_name),
                has_suffix_dot(c.symbol),
                market_cap_rank(c.security),
            ),
        )
        logger.debug(
            "global ranking for %s: %s",
            entity.name,
            [f"{c.symbol}={scores[id(c)]}" for c in ranked[:5]],
        )
        return _select(entity_matches, ranked[0], views, context_exchange, REASON_GLOBAL)

    in_geography = []
    for position, candidate in enumerate(matching):
        if any(is_stock_from_exchange(candidate.security, exchange) for exchange in exchanges):
            in_geography.append(candidate)
            views[position] = _view(candidate, f"Matches preferred exchange for {geography}")

    if in_geography:
        best = sorted(in_geography, key=lambda c: _geography_sort_key(c, geography))[0]
        return _select(
            entity_matches,
            best,
            views,
            context_exchange,
            f"Matched preferred exchange for {geography}",
        )

    if len(matching) == 1:
        return _select(entity_matches, matching[0], views, context_exchange, REASON_ONLY_ONE)

    scores = {id(c): fallback_score(c.security, normalized_name) for c in matching}
    ranked = sorted(
        matching,
        key=lambda c: (
            -scores[id(c)],
            not is_exact_name(c.security, normalized_name),
            not prefers_geography_suffix(c.symbol, geography),
            -primary_market_rank(c.security),
            len(c.symbol),
        ),
    )
    best_score = scores[id(ranked[0])]
    logger.debug(
        "fallback ranking for %s: %s",
        entity.name,
        [f"{c.symbol}={scores[id(c)]}" for c in ranked[:5]],
    )
    return _select(
        entity_matches,
        ranked[0],
        views,
        context_exchange,
        f"Smart fallback prioritization with score {best_score}",
    )


def prioritize_by_geography(matches: MatchResult, geography: str) -> PrioritizationResult:
    geography = (geography or "").strip().lower()
    selections: List[TickerSelection] = []
    for entity_matches in matches.entities:
        selection = resolve_entity(entity_matches, geography)
        if selection is not None:
            selections.append(selection)
    logger.info(
        "prioritized %d entities for geography=%s -> %s",
        len(matches.entities),
        geography,
        [selection.ticker for selection in selections],
    )
    return PrioritizationResult(geography=geography, selections=selections)
