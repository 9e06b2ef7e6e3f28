from __future__ import annotations

import asyncio
import tempfile
import unittest
from pathlib import Path
from typing import List

from ticker_identifier.config import AppConfig
from ticker_identifier.core.errors import CorpusUnavailableError, ProviderExecutionError
from ticker_identifier.core.registry import ProviderRegistry
from ticker_identifier.core.types import Security
from ticker_identifier.modules.corpus.service import SecurityCorpusService, format_cache_age
from ticker_identifier.settings import AppSettings

NOW = 1_700_000_000.0

SECURITIES = [
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
]


class _CountingProvider:
    provider_id = "stub"

    def __init__(self, securities: List[Security], failures: int = 0, delay: float = 0.0):
        self.securities = securities
        self.failures = failures
        self.delay = delay
        self.calls = 0

    async def fetch(self) -> List[Security]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.calls <= self.failures:
            raise ProviderExecutionError(f"upstream down (call {self.calls})")
        return list(self.securities)


class _Clock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class SecurityCorpusServiceTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        self.db_path = Path(self._tmpdir.name) / "data" / "corpus.db"
        self.sleeps: List[float] = []

    async def _record_sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    def _build(self, provider, clock=None, **corpus_overrides) -> SecurityCorpusService:
        corpus = {"default_provider": "stub", **corpus_overrides}
        config = AppConfig(
            database={"url": f"sqlite:///{self.db_path}"},
            corpus=corpus,
        )
        registry = ProviderRegistry()
        registry.register("corpus", "stub", lambda: provider)
        return SecurityCorpusService(
            config=config,
            registry=registry,
            settings=AppSettings(fmp_api_key=None),
            clock=clock or _Clock(),
            sleep=self._record_sleep,
        )

    async def test_memory_cache_serves_repeat_calls(self):
        provider = _CountingProvider(SECURITIES)
        service = self._build(provider)

        first = await service.get_securities()
        second = await service.get_securities()

        self.assertEqual(provider.calls, 1)
        self.assertEqual([s.symbol for s in first], ["BABA", "9988.HK", "AAPL"])
        self.assertEqual(first, second)

    async def test_concurrent_loads_share_one_fetch(self):
        provider = _CountingProvider(SECURITIES, delay=0.01)
        service = self._build(provider)

        results = await asyncio.gather(
            service.get_securities(), service.get_securities(), service.get_securities()
        )

        self.assertEqual(provider.calls, 1)
        self.assertTrue(all(len(result) == 3 for result in results))

    async def test_retry_with_backoff(self):
        provider = _CountingProvider(SECURITIES, failures=2)
        service = self._build(provider, retry_delay_seconds=1.0, backoff_multiplier=1.5)

        securities = await service.get_securities()

        self.assertEqual(len(securities), 3)
        self.assertEqual(provider.calls, 3)
        self.assertEqual(self.sleeps, [1.0, 1.5])

    async def test_exhausted_retries_raise(self):
        provider = _CountingProvider(SECURITIES, failures=10)
        service = self._build(provider, max_retries=3)

        with self.assertRaises(CorpusUnavailableError) as ctx:
            await service.get_securities()

        self.assertEqual(str(ctx.exception), "Failed to load stock data after 3 attempts")
        self.assertEqual(provider.calls, 3)
        self.assertEqual(len(self.sleeps), 2)

    async def test_empty_provider_result_counts_as_failure(self):
        provider = _CountingProvider([])
        service = self._build(provider, max_retries=2)

        with self.assertRaises(CorpusUnavailableError):
            await service.get_securities()
        self.assertEqual(provider.calls, 2)

    async def test_persisted_snapshot_survives_restart(self):
        await self._build(_CountingProvider(SECURITIES)).get_securities()

        restarted_provider = _CountingProvider(SECURITIES)
        restarted = self._build(restarted_provider)
        securities = await restarted.get_securities()

        self.assertEqual(restarted_provider.calls, 0)
        self.assertEqual([s.symbol for s in securities], ["BABA", "9988.HK", "AAPL"])
        self.assertEqual(securities[1].exchange_short_name, "HKSE")
        self.assertEqual(securities[1].exchange, "Hong Kong Stock Exchange")

    async def test_snapshot_with_other_version_is_ignored(self):
        await self._build(_CountingProvider(SECURITIES)).get_securities()

        provider = _CountingProvider(SECURITIES[:1])
        service = self._build(provider, cache_version="2.0")
        securities = await service.get_securities()

        self.assertEqual(provider.calls, 1)
        self.assertEqual(len(securities), 1)

    async def test_expired_snapshot_is_refetched(self):
        await self._build(_CountingProvider(SECURITIES)).get_securities()

        provider = _CountingProvider(SECURITIES[:2])
        service = self._build(provider, clock=_Clock(NOW + 8 * 86400))
        securities = await service.get_securities()

        self.assertEqual(provider.calls, 1)
        self.assertEqual(len(securities), 2)

    async def test_memory_expiry_falls_back_to_snapshot(self):
        clock = _Clock()
        provider = _CountingProvider(SECURITIES)
        service = self._build(provider, clock=clock)
        await service.get_securities()

        clock.now += 3601
        securities = await service.get_securities()

        self.assertEqual(provider.calls, 1)
        self.assertEqual(len(securities), 3)

    async def test_refresh_bypasses_caches(self):
        provider = _CountingProvider(SECURITIES)
        service = self._build(provider)
        await service.get_securities()

        count = await service.refresh()

        self.assertEqual(count, 3)
        self.assertEqual(provider.calls, 2)

    async def test_index_rebuilt_after_refresh(self):
        provider = _CountingProvider(SECURITIES)
        service = self._build(provider)

        index = await service.get_index()
        self.assertIs(await service.get_index(), index)
        self.assertEqual(len(index), 3)

        provider.securities = SECURITIES[:1]
        refreshed = await service.get_index(force_refresh=True)
        self.assertIsNot(refreshed, index)
        self.assertEqual(len(refreshed), 1)

    async def test_cache_status_and_clear(self):
        clock = _Clock()
        service = self._build(_CountingProvider(SECURITIES), clock=clock)
        self.assertFalse(service.cache_status().is_cached)

        await service.get_securities()
        clock.now += 600
        status = service.cache_status()

        self.assertTrue(status.is_cached)
        self.assertEqual(status.stock_count, 3)
        self.assertEqual(status.timestamp, NOW)
        self.assertEqual(status.cache_age, "10 minutes ago")
        self.assertFalse(status.is_memory_only)

        self.assertEqual(service.clear_cache(), 1)
        self.assertFalse(service.cache_status().is_cached)
        self.assertEqual(service.clear_cache(), 0)

    async def test_status_reports_persisted_snapshot_before_first_load(self):
        await self._build(_CountingProvider(SECURITIES)).get_securities()

        status = self._build(_CountingProvider(SECURITIES), clock=_Clock(NOW + 7200)).cache_status()

        self.assertTrue(status.is_cached)
        self.assertEqual(status.stock_count, 3)
        self.assertEqual(status.cache_age, "2 hours ago")


class FormatCacheAgeTest(unittest.TestCase):
    def test_buckets(self):
        self.assertEqual(format_cache_age(30), "just now")
        self.assertEqual(format_cache_age(90), "2 minutes ago")
        self.assertEqual(format_cache_age(7200), "2 hours ago")
        self.assertEqual(format_cache_age(3 * 86400), "3 days ago")


if __name__ == "__main__":
    unittest.main()
