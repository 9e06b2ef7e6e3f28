from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from typing import List, Optional

from ticker_identifier.config import AppConfig, ExtractionConfig, default_extraction_providers
from ticker_identifier.core.errors import (
    ProviderExecutionError,
    TickerResolutionError,
    ValidationError,
)
from ticker_identifier.core.registry import ProviderRegistry
from ticker_identifier.core.types import ExtractedEntity, Security
from ticker_identifier.modules.prioritization.prioritizer import REASON_NUMERIC_FALLBACK
from ticker_identifier.modules.resolution.service import TickerResolutionService
from ticker_identifier.settings import AppSettings

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
        symbol="0943.HK",
        name="Sino Golf Holdings Limited",
        exchange="Hong Kong Stock Exchange",
        exchangeShortName="HKSE",
    ),
]


class _ScriptedOracle:
    provider_id = "scripted"

    def __init__(self) -> None:
        self.outputs: List[str] = []

    async def extract(self, prompt: str, api_key: Optional[str] = None) -> str:
        return self.outputs.pop(0)


class _StaticCorpus:
    provider_id = "static"

    def __init__(self, securities: List[Security], error: Optional[Exception] = None) -> None:
        self.securities = securities
        self.error = error

    async def fetch(self) -> List[Security]:
        if self.error is not None:
            raise self.error
        return list(self.securities)


class TickerResolutionServiceTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        self.oracle = _ScriptedOracle()

    def _service(self, corpus: _StaticCorpus) -> TickerResolutionService:
        db_path = Path(self._tmpdir.name) / "data" / "resolution.db"
        config = AppConfig(
            database={"url": f"sqlite:///{db_path}"},
            corpus={"default_provider": "static", "max_retries": 1},
            extraction=ExtractionConfig(
                default_provider="mock",
                fallback_order=[],
                providers=default_extraction_providers(),
            ),
        )
        registry = ProviderRegistry()
        registry.register("extraction", "mock", lambda provider_config: self.oracle)
        registry.register("corpus", "static", lambda: corpus)
        return TickerResolutionService(
            config=config,
            registry=registry,
            settings=AppSettings(openai_api_key=None, fmp_api_key=None),
        )

    async def test_same_company_on_two_exchanges(self):
        service = self._service(_StaticCorpus(CORPUS))
        self.oracle.outputs.append("Alibaba [HKEX/NYSE]")

        result = await service.extract_tickers(
            "compare Alibaba in Hong Kong and US markets", geography="us"
        )

        self.assertEqual(result.tickers, ["9988.HK", "BABA"])
        self.assertEqual(len(result.groups), 1)
        self.assertEqual(result.groups[0].original_text, "Alibaba [HKEX/NYSE]")
        self.assertEqual(result.groups[0].tickers, ["9988.HK", "BABA"])
        self.assertEqual(service.last_entity_map()["9988.HK"].exchange, "HKEX")
        self.assertEqual(
            service.last_debug_map()["9988.HK"].selection_reason, "User specified exchange: HKEX"
        )

    async def test_leading_zero_code_resolves_by_fuzzy_fallback(self):
        service = self._service(_StaticCorpus(CORPUS))
        self.oracle.outputs.append("00943")

        result = await service.extract_tickers("00943", geography="hk")

        self.assertEqual(result.tickers, ["0943.HK"])
        self.assertEqual(result.groups[0].original_text, "00943")
        self.assertEqual(
            service.last_debug_map()["0943.HK"].selection_reason, REASON_NUMERIC_FALLBACK
        )

    async def test_side_tables_reset_between_runs(self):
        service = self._service(_StaticCorpus(CORPUS))
        self.oracle.outputs.extend(["Alibaba [HKEX/NYSE]", "Apple"])

        await service.extract_tickers("compare Alibaba in Hong Kong and US markets", geography="us")
        result = await service.extract_tickers("Find me Apple stock price", geography="us")

        self.assertEqual(result.tickers, ["AAPL"])
        self.assertEqual(set(service.last_debug_map()), {"AAPL"})
        self.assertEqual(set(service.last_entity_map()), {"AAPL"})

    async def test_nothing_extracted_gives_empty_result(self):
        service = self._service(_StaticCorpus(CORPUS))
        self.oracle.outputs.append("")

        result = await service.extract_tickers("what is the weather today", geography="us")

        self.assertEqual(result.groups, [])
        self.assertEqual(result.tickers, [])
        self.assertEqual(service.last_debug_map(), {})

    async def test_resolve_entities_without_oracle(self):
        service = self._service(_StaticCorpus(CORPUS))

        result = await service.resolve_entities(
            [ExtractedEntity(name="NVDA", symbol="NVDA", original_text="NVDA")],
            geography="global",
        )

        self.assertEqual(result.tickers, ["NVDA"])
        self.assertEqual(result.groups[0].tickers, ["NVDA"])

    async def test_corpus_failure_becomes_resolution_error(self):
        service = self._service(
            _StaticCorpus(CORPUS, error=ProviderExecutionError("stock list unreachable"))
        )
        self.oracle.outputs.append("Apple")

        with self.assertRaises(TickerResolutionError) as ctx:
            await service.extract_tickers("Find me Apple stock price")

        self.assertEqual(str(ctx.exception), "Failed to extract tickers")
        self.assertIsNone(service.last_result)

    async def test_invalid_input_is_rejected(self):
        service = self._service(_StaticCorpus(CORPUS))

        with self.assertRaises(ValidationError):
            await service.extract_tickers("   ")
        with self.assertRaises(ValidationError):
            await service.extract_tickers("Apple", geography="mars")
        with self.assertRaises(ValidationError):
            await service.extract_tickers("Apple", language="klingon")


if __name__ == "__main__":
    unittest.main()
