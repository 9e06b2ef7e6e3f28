import unittest

from ticker_identifier.config import MatchingConfig
from ticker_identifier.core.types import ExtractedEntity, Security
from ticker_identifier.modules.corpus.enhancer import enhance_securities
from ticker_identifier.modules.matching.index import SecurityIndex
from ticker_identifier.modules.matching.matcher import match_entity, match_stock_symbols
from ticker_identifier.modules.matching.schemas import (
    REASON_ACRONYM,
    REASON_FUZZY,
    REASON_NAME_CONTAINS,
    REASON_NORMALIZED_NAME,
    REASON_SEARCH_TERM,
    REASON_SYMBOL,
)

CORPUS = [
    Security(
        symbol="BABA",
        name="Alibaba Group Holding Limited",
        exchange="New York Stock Exchange",
        exchangeShortName="NYSE",
    ),
    Security(
        symbol="9988.HK",
        name="Alibaba Group Holding Limited",
        exchange="Hong Kong Stock Exchange",
        exchangeShortName="HKSE",
    ),
    Security(
        symbol="AAPL",
        name="Apple Inc.",
        exchange="NASDAQ Global Select",
        exchangeShortName="NASDAQ",
    ),
    Security(
        symbol="NVDA",
        name="NVIDIA Corporation",
        exchange="NASDAQ Global Select",
        exchangeShortName="NASDAQ",
    ),
    Security(
        symbol="0388.HK",
        name="Hong Kong Exchanges and Clearing Limited",
        exchange="Hong Kong Stock Exchange",
        exchangeShortName="HKSE",
    ),
]


class SecurityMatcherTest(unittest.TestCase):
    def setUp(self):
        self.index = SecurityIndex(enhance_securities(CORPUS))
        self.config = MatchingConfig()

    def test_index_symbol_lookup_ignores_case(self):
        self.assertEqual(len(self.index), 5)
        self.assertEqual([s.symbol for s in self.index.find_by_symbol("baba")], ["BABA"])
        self.assertEqual(self.index.find_by_symbol(""), [])

    def test_symbol_entity_matches_symbol_first(self):
        entity = ExtractedEntity(name="NVDA", symbol="NVDA", original_text="NVDA")
        candidates = match_entity(entity, self.index, self.config)

        self.assertEqual(candidates[0].symbol, "NVDA")
        self.assertEqual(candidates[0].match_reason, REASON_SYMBOL)
        self.assertEqual([c.symbol for c in candidates].count("NVDA"), 1)

    def test_name_finds_every_listing_in_corpus_order(self):
        entity = ExtractedEntity(name="Alibaba")
        candidates = match_entity(entity, self.index, self.config)

        self.assertEqual([c.symbol for c in candidates[:2]], ["BABA", "9988.HK"])
        self.assertEqual({c.match_reason for c in candidates[:2]}, {REASON_SEARCH_TERM})

    def test_fuzzy_search_skipped_when_direct_matches_suffice(self):
        config = MatchingConfig(fuzzy_min_matches=2)
        candidates = match_entity(ExtractedEntity(name="Alibaba"), self.index, config)

        self.assertEqual(len(candidates), 2)
        self.assertFalse(any(c.is_fuzzy for c in candidates))

    def test_acronym_match(self):
        candidates = match_entity(ExtractedEntity(name="HKEC"), self.index, self.config)

        self.assertEqual(candidates[0].symbol, "0388.HK")
        self.assertEqual(candidates[0].match_reason, REASON_ACRONYM)

    def test_normalized_name_match(self):
        candidates = match_entity(ExtractedEntity(name="Apple Inc"), self.index, self.config)

        self.assertEqual(candidates[0].symbol, "AAPL")
        self.assertEqual(candidates[0].match_reason, REASON_NORMALIZED_NAME)

    def test_name_contains_match(self):
        candidates = match_entity(ExtractedEntity(name="nvidia corp"), self.index, self.config)

        self.assertEqual(candidates[0].symbol, "NVDA")
        self.assertEqual(candidates[0].match_reason, REASON_NAME_CONTAINS)

    def test_typo_falls_back_to_fuzzy_search(self):
        candidates = match_entity(ExtractedEntity(name="Alibaba Grup"), self.index, self.config)
        symbols = [c.symbol for c in candidates]

        self.assertIn("BABA", symbols)
        self.assertIn("9988.HK", symbols)
        for candidate in candidates:
            self.assertEqual(candidate.match_reason, REASON_FUZZY)
            self.assertLess(candidate.fuzzy_distance, self.config.fuzzy_threshold)

    def test_fuzzy_search_ignores_queries_below_min_length(self):
        self.assertEqual(self.index.fuzzy_matches("a", self.config), [])

    def test_short_values_compared_only_when_cutoff_is_reachable(self):
        index = SecurityIndex(
            enhance_securities(
                [
                    Security(symbol=symbol, name="Quux Industries", exchangeShortName="NYSE")
                    for symbol in ("ABCD", "ABCDE", "ABCDEF")
                ]
            )
        )

        distances = sorted(index._field_distances("abcdefghij", "symbol", self.config))

        self.assertEqual([position for position, _ in distances], [1, 2])
        self.assertAlmostEqual(distances[0][1], 1.0 - 10 / 15, places=6)
        self.assertAlmostEqual(distances[1][1], 0.25, places=6)

    def test_match_stock_symbols_keeps_entity_positions(self):
        entities = [
            ExtractedEntity(name="Alibaba", exchange="HKEX", original_text="Alibaba [HKEX/NYSE]"),
            ExtractedEntity(name="Alibaba", exchange="NYSE", original_text="Alibaba [HKEX/NYSE]"),
            ExtractedEntity(name="qqqqqq"),
        ]
        result = match_stock_symbols(entities, self.index)

        self.assertEqual([m.entity_index for m in result.entities], [0, 1, 2])
        self.assertEqual(result.entities[1].entity.exchange, "NYSE")
        self.assertEqual(result.entities[2].candidates, [])
        self.assertFalse(result.is_empty)
        self.assertIn("BABA", [s.symbol for s in result.flat_securities()])

    def test_unknown_entity_has_no_candidates(self):
        result = match_stock_symbols([ExtractedEntity(name="qqqqqq")], self.index)
        self.assertTrue(result.is_empty)


if __name__ == "__main__":
    unittest.main()
