from __future__ import annotations

import logging
from bisect import bisect_left
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from rapidfuzz import fuzz, process, utils

from ticker_identifier.config import MatchingConfig
from ticker_identifier.core.types import EnhancedSecurity
from ticker_identifier.modules.corpus.enhancer import clean_term
from ticker_identifier.modules.matching.schemas import (
    REASON_ACRONYM,
    REASON_EXACT_SYMBOL,
    REASON_NAME_CONTAINS,
    REASON_NORMALIZED_NAME,
    REASON_SEARCH_TERM,
)

logger = logging.getLogger(__name__)

# Fuzzy distances of exactly zero would zero out the weighted product.
_EPSILON = 1e-9

_FUZZY_FIELDS = ("symbol", "name", "acronyms", "search_terms")


class _FieldChoices:
    """Processed strings of one field, ordered by length."""

    def __init__(self) -> None:
        self._pending: List[Tuple[str, int]] = []
        self.choices: List[str] = []
        self.owners: List[int] = []
        self.lengths: List[int] = []

    def add(self, value: str, position: int) -> None:
        processed = utils.default_process(value)
        if processed:
            self._pending.append((processed, position))

    def freeze(self) -> None:
        self._pending.sort(key=lambda item: len(item[0]))
        self.choices = [choice for choice, _ in self._pending]
        self.owners = [owner for _, owner in self._pending]
        self.lengths = [len(choice) for choice in self.choices]
        self._pending = []


class SecurityIndex:
    """Lookup tables over one enhanced corpus snapshot.

    Built once per corpus load and never mutated.  Direct lookups return
    securities in corpus order.
    """

    def __init__(self, securities: Iterable[EnhancedSecurity]) -> None:
        self.securities: List[EnhancedSecurity] = list(securities)
        self._by_symbol: Dict[str, List[int]] = defaultdict(list)
        self._by_acronym: Dict[str, List[int]] = defaultdict(list)
        self._by_search_term: Dict[str, List[int]] = defaultdict(list)
        self._by_clean_term: Dict[str, List[int]] = defaultdict(list)
        self._lower_names: List[str] = []
        self._fields: Dict[str, _FieldChoices] = {field: _FieldChoices() for field in _FUZZY_FIELDS}

        for position, security in enumerate(self.securities):
            self._by_symbol[security.symbol.lower()].append(position)
            self._lower_names.append(security.name.lower())
            for acronym in dict.fromkeys(a.lower() for a in security.acronyms):
                self._by_acronym[acronym].append(position)
            for term in security.search_terms:
                self._by_search_term[term].append(position)
            for cleaned in dict.fromkeys(clean_term(term) for term in security.search_terms):
                if cleaned:
                    self._by_clean_term[cleaned].append(position)

            self._fields["symbol"].add(security.symbol, position)
            self._fields["name"].add(security.name, position)
            for acronym in security.acronyms:
                self._fields["acronyms"].add(acronym, position)
            for term in security.search_terms:
                self._fields["search_terms"].add(term, position)

        for field_choices in self._fields.values():
            field_choices.freeze()
        logger.info("indexed %d securities", len(self.securities))

    def __len__(self) -> int:
        return len(self.securities)

    def _securities_at(self, positions: Iterable[int]) -> List[EnhancedSecurity]:
        return [self.securities[position] for position in positions]

    def find_by_symbol(self, symbol: str) -> List[EnhancedSecurity]:
        """All listings whose symbol equals ``symbol`` ignoring case."""
        if not symbol:
            return []
        return self._securities_at(self._by_symbol.get(symbol.strip().lower(), []))

    def direct_matches(
        self, query: str, substring_min_length: int = 3
    ) -> List[Tuple[EnhancedSecurity, str]]:
        """Exact-ish strategies, each security tagged with the first strategy that found it."""
        normalized = (query or "").strip().lower()
        if not normalized:
            return []

        found: Dict[int, str] = {}

        def collect(positions: Iterable[int], reason: str) -> None:
            for position in positions:
                found.setdefault(position, reason)

        collect(self._by_symbol.get(normalized, []), REASON_EXACT_SYMBOL)
        collect(self._by_acronym.get(normalized, []), REASON_ACRONYM)
        collect(self._by_search_term.get(normalized, []), REASON_SEARCH_TERM)
        cleaned = clean_term(normalized)
        if cleaned:
            collect(self._by_clean_term.get(cleaned, []), REASON_NORMALIZED_NAME)
        if len(normalized) >= substring_min_length:
            collect(
                (
                    position
                    for position, name in enumerate(self._lower_names)
                    if normalized in name
                ),
                REASON_NAME_CONTAINS,
            )
        return [(self.securities[position], reason) for position, reason in found.items()]

    def _field_distances(
        self, processed_query: str, field: str, config: MatchingConfig
    ) -> List[Tuple[int, float]]:
        field_choices = self._fields[field]
        if not field_choices.choices:
            return []
        score_cutoff = (1.0 - config.fuzzy_threshold) * 100
        query_length = len(processed_query)
        # fuzz.ratio of a shorter value is at most 2l / (l + q).
        cutoff = score_cutoff / 100.0
        min_whole_length = max(config.min_match_chars, int(cutoff * query_length / (2.0 - cutoff)))
        start = bisect_left(field_choices.lengths, min_whole_length)
        split = max(start, bisect_left(field_choices.lengths, query_length))
        # The query is searched inside longer values; shorter values are compared whole.
        segments = (
            (start, field_choices.choices[start:split], fuzz.ratio),
            (split, field_choices.choices[split:], fuzz.partial_ratio),
        )
        distances: List[Tuple[int, float]] = []
        for offset, choices, scorer in segments:
            if not choices:
                continue
            results = process.extract(
                processed_query,
                choices,
                scorer=scorer,
                processor=None,
                limit=None,
                score_cutoff=score_cutoff,
            )
            for _, score, choice_index in results:
                distance = 1.0 - score / 100.0
                if distance < config.fuzzy_threshold:
                    distances.append((field_choices.owners[offset + choice_index], distance))
        return distances

    def fuzzy_matches(
        self, query: str, config: MatchingConfig
    ) -> List[Tuple[EnhancedSecurity, float]]:
        """Weighted multi-field fuzzy search.

        Each field contributes its best score per security as a distance in
        ``[0, 1]``; fields within the threshold are combined as a weighted
        geometric product.  Results come back best first.
        """
        processed_query = utils.default_process(query or "")
        if len(processed_query) < config.min_match_chars:
            return []

        weights = config.weights.model_dump()
        total_weight = sum(weights.values()) or 1.0

        field_distances: Dict[int, Dict[str, float]] = defaultdict(dict)
        for field in _FUZZY_FIELDS:
            for position, distance in self._field_distances(processed_query, field, config):
                current = field_distances[position].get(field)
                if current is None or distance < current:
                    field_distances[position][field] = distance

        scored: List[Tuple[int, float]] = []
        for position, distances in field_distances.items():
            combined = 1.0
            for field, distance in distances.items():
                combined *= max(distance, _EPSILON) ** (weights[field] / total_weight)
            if combined < config.fuzzy_threshold:
                scored.append((position, combined))

        scored.sort(key=lambda item: (item[1], item[0]))
        return [(self.securities[position], distance) for position, distance in scored]
