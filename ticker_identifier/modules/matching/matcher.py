from __future__ import annotations

import logging
from typing import List, Optional, Set

from ticker_identifier.config import MatchingConfig
from ticker_identifier.core.types import ExtractedEntity
from ticker_identifier.modules.matching.index import SecurityIndex
from ticker_identifier.modules.matching.schemas import (
    REASON_FUZZY,
    REASON_SYMBOL,
    EntityMatches,
    MatchCandidate,
    MatchResult,
)

logger = logging.getLogger(__name__)


def match_entity(
    entity: ExtractedEntity, index: SecurityIndex, config: MatchingConfig
) -> List[MatchCandidate]:
    candidates: List[MatchCandidate] = []
    seen: Set[str] = set()

    def add(candidate: MatchCandidate) -> None:
        if candidate.symbol in seen:
            return
        seen.add(candidate.symbol)
        candidates.append(candidate)

    if entity.symbol:
        # Cross-listed symbols can appear more than once in a corpus.
        for security in index.find_by_symbol(entity.symbol):
            add(MatchCandidate(security=security, match_reason=REASON_SYMBOL))

    for security, reason in index.direct_matches(entity.name, config.substring_min_length):
        add(MatchCandidate(security=security, match_reason=reason))

    if len(seen) < config.fuzzy_min_matches:
        for security, distance in index.fuzzy_matches(entity.name, config):
            add(
                MatchCandidate(
                    security=security,
                    match_reason=REASON_FUZZY,
                    fuzzy_distance=distance,
                )
            )
    else:
        logger.debug("%s already has %d matches, skipping fuzzy search", entity.name, len(seen))

    logger.debug(
        "matched %s -> %s",
        entity.name,
        [f"{c.symbol} ({c.security.exchange_short_name})" for c in candidates],
    )
    return candidates


def match_stock_symbols(
    entities: List[ExtractedEntity],
    index: SecurityIndex,
    config: Optional[MatchingConfig] = None,
) -> MatchResult:
    """Collect candidate securities for every entity, keyed by entity position."""
    config = config or MatchingConfig()
    result = MatchResult(
        entities=[
            EntityMatches(
                entity_index=entity_index,
                entity=entity,
                candidates=match_entity(entity, index, config),
            )
            for entity_index, entity in enumerate(entities)
        ]
    )
    logger.info(
        "matched %d candidates for %d entities against %d securities",
        len(result.flat_securities()),
        len(entities),
        len(index),
    )
    return result
