from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

from ticker_identifier.config import AppConfig
from ticker_identifier.core.contracts import SecuritiesProvider
from ticker_identifier.core.errors import CorpusUnavailableError
from ticker_identifier.core.registry import ProviderRegistry
from ticker_identifier.core.types import Security
from ticker_identifier.infra.db.repos import CorpusSnapshotRepo
from ticker_identifier.infra.db.session import init_db, session_scope
from ticker_identifier.modules.corpus.enhancer import enhance_securities
from ticker_identifier.modules.corpus.providers.file_provider import FileSecuritiesProvider
from ticker_identifier.modules.corpus.providers.fmp_provider import FmpSecuritiesProvider
from ticker_identifier.modules.corpus.schemas import CacheStatus
from ticker_identifier.modules.corpus.snapshot import decode_chunks, encode_chunks
from ticker_identifier.modules.matching.index import SecurityIndex
from ticker_identifier.settings import AppSettings

logger = logging.getLogger(__name__)


def format_cache_age(age_seconds: float) -> str:
    if age_seconds < 60:
        return "just now"
    if age_seconds < 3600:
        return f"{int(age_seconds / 60 + 0.5)} minutes ago"
    if age_seconds < 86400:
        return f"{int(age_seconds / 3600 + 0.5)} hours ago"
    return f"{int(age_seconds / 86400 + 0.5)} days ago"


class SecurityCorpusService:
    """Loads the securities corpus and keeps it cached in memory and in SQLite.

    Lookup order is memory, then the persisted snapshot, then the provider
    with retries.  Concurrent loads share one in-flight task.
    """

    MODULE_NAME = "corpus"

    def __init__(
        self,
        config: AppConfig,
        registry: ProviderRegistry,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.registry = registry
        self.settings = settings or AppSettings()
        self._clock = clock
        self._sleep = sleep
        self._securities: Optional[List[Security]] = None
        self._index: Optional[SecurityIndex] = None
        self._loaded_at: Optional[float] = None
        self._persisted_at: Optional[float] = None
        self._inflight: Optional[asyncio.Task] = None
        self.registry.register_default(self.MODULE_NAME, "fmp", self._build_fmp)
        self.registry.register_default(self.MODULE_NAME, "file", self._build_file)
        self.config.ensure_data_root()
        init_db(self.config.database.url)

    def _build_fmp(self):
        return FmpSecuritiesProvider(
            url=self.config.corpus.fmp_url,
            api_key=self.settings.credential("fmp_api_key"),
        )

    def _build_file(self):
        return FileSecuritiesProvider(path=self.config.corpus.data_path)

    def _memory_valid(self) -> bool:
        if self._securities is None or self._loaded_at is None:
            return False
        return self._clock() - self._loaded_at < self.config.corpus.memory_ttl_seconds

    async def get_securities(self, force_refresh: bool = False) -> List[Security]:
        if not force_refresh and self._memory_valid():
            return list(self._securities or [])

        task = self._inflight
        if task is None or task.done() or force_refresh:
            task = asyncio.ensure_future(self._load(force_refresh))
            self._inflight = task
        else:
            logger.debug("corpus load already in flight, awaiting it")
        try:
            securities = await asyncio.shield(task)
        finally:
            if self._inflight is task and task.done():
                self._inflight = None
        return list(securities)

    async def get_index(self, force_refresh: bool = False) -> SecurityIndex:
        securities = await self.get_securities(force_refresh=force_refresh)
        if self._index is None:
            self._index = SecurityIndex(enhance_securities(securities))
        return self._index

    async def refresh(self) -> int:
        securities = await self.get_securities(force_refresh=True)
        return len(securities)

    def clear_cache(self) -> int:
        self._set_memory(None, None)
        self._persisted_at = None
        with session_scope(self.config.database.url) as session:
            removed = CorpusSnapshotRepo(session).clear()
        logger.info("cleared corpus cache (%d persisted snapshots)", removed)
        return removed

    def cache_status(self) -> CacheStatus:
        now = self._clock()
        if self._securities is not None:
            timestamp = self._persisted_at or self._loaded_at or now
            return CacheStatus(
                is_cached=True,
                timestamp=timestamp,
                stock_count=len(self._securities),
                cache_age=format_cache_age(now - timestamp),
                is_memory_only=self._persisted_at is None,
            )
        with session_scope(self.config.database.url) as session:
            snapshot = CorpusSnapshotRepo(session).latest()
            if snapshot is None or snapshot.cache_version != self.config.corpus.cache_version:
                return CacheStatus()
            return CacheStatus(
                is_cached=True,
                timestamp=snapshot.fetched_at,
                stock_count=snapshot.record_count,
                cache_age=format_cache_age(now - snapshot.fetched_at),
                is_memory_only=False,
            )

    def _set_memory(self, securities: Optional[List[Security]], loaded_at: Optional[float]) -> None:
        self._securities = securities
        self._loaded_at = loaded_at
        self._index = None

    async def _load(self, force_refresh: bool) -> List[Security]:
        if not force_refresh:
            persisted = self._load_snapshot()
            if persisted:
                self._set_memory(persisted, self._clock())
                return persisted
        else:
            logger.info("forced corpus refresh requested")

        securities = await self._fetch_with_retry()
        self._set_memory(securities, self._clock())
        self._save_snapshot(securities)
        return securities

    async def _fetch_with_retry(self) -> List[Security]:
        corpus_config = self.config.corpus
        provider: SecuritiesProvider = self.registry.resolve(
            self.MODULE_NAME, corpus_config.default_provider
        )
        delay = corpus_config.retry_delay_seconds
        last_error: Optional[Exception] = None
        for attempt in range(1, corpus_config.max_retries + 1):
            try:
                securities = await provider.fetch()
                if not securities:
                    raise CorpusUnavailableError("Securities provider returned no records")
                logger.info(
                    "loaded %d securities from %s on attempt %d",
                    len(securities),
                    corpus_config.default_provider,
                    attempt,
                )
                return securities
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "corpus fetch attempt %d/%d failed: %s",
                    attempt,
                    corpus_config.max_retries,
                    exc,
                )
            if attempt < corpus_config.max_retries:
                await self._sleep(delay)
                delay *= corpus_config.backoff_multiplier
        raise CorpusUnavailableError(
            f"Failed to load stock data after {corpus_config.max_retries} attempts"
        ) from last_error

    def _load_snapshot(self) -> Optional[List[Security]]:
        corpus_config = self.config.corpus
        with session_scope(self.config.database.url) as session:
            repo = CorpusSnapshotRepo(session)
            snapshot = repo.latest()
            if snapshot is None:
                return None
            if snapshot.cache_version != corpus_config.cache_version:
                logger.info(
                    "corpus cache version %s does not match %s",
                    snapshot.cache_version,
                    corpus_config.cache_version,
                )
                return None
            age = self._clock() - snapshot.fetched_at
            if age > corpus_config.persistent_ttl_days * 86400:
                logger.info("corpus cache expired (%s)", format_cache_age(age))
                return None
            fetched_at = snapshot.fetched_at
            payloads = [chunk.payload for chunk in repo.chunks(snapshot.id)]
        securities = decode_chunks(payloads)
        if not securities:
            logger.warning("corpus cache holds no readable records")
            return None
        self._persisted_at = fetched_at
        logger.info("loaded %d securities from corpus cache (%s)", len(securities), format_cache_age(age))
        return securities

    def _save_snapshot(self, securities: List[Security]) -> None:
        corpus_config = self.config.corpus
        fetched_at = self._clock()
        payloads = encode_chunks(securities, corpus_config.chunk_bytes, corpus_config.min_chunk_records)
        try:
            with session_scope(self.config.database.url) as session:
                CorpusSnapshotRepo(session).replace(
                    cache_version=corpus_config.cache_version,
                    provider_id=corpus_config.default_provider,
                    payloads=payloads,
                    record_count=len(securities),
                    fetched_at=fetched_at,
                )
        except Exception as exc:
            # The memory copy still serves this process.
            logger.warning("failed to persist corpus cache, keeping memory only: %s", exc)
            self._persisted_at = None
            return
        self._persisted_at = fetched_at
        logger.info("persisted %d securities in %d chunks", len(securities), len(payloads))
