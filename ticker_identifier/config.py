from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ticker_identifier.core.types import Geography, Language

DEFAULT_STOP_SEQUENCES = ["Query --", "Here is the user query:"]


class ExtractionProviderConfig(BaseModel):
    provider_id: str
    type: str = "openai_compatible"
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout: int = Field(default=30, ge=3, le=120)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_tokens: int = Field(default=100, ge=16, le=4096)
    stop: List[str] = Field(default_factory=lambda: list(DEFAULT_STOP_SEQUENCES))
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    # Attribute name on AppSettings holding the credential; None means no key needed.
    api_key_setting: Optional[str] = None
    enabled: bool = True


class ExtractionConfig(BaseModel):
    default_provider: str = "openai"
    fallback_order: List[str] = Field(default_factory=lambda: ["openrouter", "deepseek"])
    providers: List[ExtractionProviderConfig] = Field(default_factory=list)


class CorpusConfig(BaseModel):
    default_provider: str = "fmp"
    fmp_url: str = "https://financialmodelingprep.com/api/v3/stock/list"
    data_path: Optional[Path] = None
    cache_version: str = "1.3"
    memory_ttl_seconds: int = Field(default=3600, ge=0)
    persistent_ttl_days: int = Field(default=7, ge=0)
    chunk_bytes: int = Field(default=500 * 1024, ge=1024)
    min_chunk_records: int = Field(default=100, ge=1)
    max_retries: int = Field(default=3, ge=1, le=10)
    retry_delay_seconds: float = Field(default=1.0, ge=0.0, le=60.0)
    backoff_multiplier: float = Field(default=1.5, ge=1.0, le=10.0)


class MatchingWeights(BaseModel):
    symbol: float = 0.4
    name: float = 0.3
    acronyms: float = 0.2
    search_terms: float = 0.1


class MatchingConfig(BaseModel):
    fuzzy_threshold: float = Field(default=0.4, gt=0.0, le=1.0)
    fuzzy_min_matches: int = Field(default=3, ge=0)
    min_match_chars: int = Field(default=2, ge=1)
    substring_min_length: int = Field(default=3, ge=1)
    weights: MatchingWeights = Field(default_factory=MatchingWeights)


class ResolutionConfig(BaseModel):
    default_geography: Geography = "us"
    default_language: Language = "english"


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///data/ticker_identifier.db"


def default_extraction_providers() -> List[ExtractionProviderConfig]:
    return [
        ExtractionProviderConfig(
            provider_id="openai",
            base_url="https://api.openai.com/v1",
            model="gpt-4o-mini",
            api_key_setting="openai_api_key",
        ),
        ExtractionProviderConfig(
            provider_id="openrouter",
            base_url="https://openrouter.ai/api/v1",
            model="deepseek/deepseek-chat-v3-0324:free",
            extra_headers={
                "HTTP-Referer": "https://stock-ticker-identifier.vercel.app",
                "X-Title": "Stock Ticker Identifier",
            },
            api_key_setting="openrouter_api_key",
        ),
        ExtractionProviderConfig(
            provider_id="deepseek",
            base_url="https://api.deepseek.com/v1",
            model="deepseek-chat",
            api_key_setting="deepseek_api_key",
        ),
        ExtractionProviderConfig(
            provider_id="mock",
            type="mock",
            base_url="",
            model="heuristic",
            timeout=5,
            api_key_setting=None,
        ),
    ]


class AppConfig(BaseModel):
    config_file: Path = Path("config/settings.yaml")
    extraction: ExtractionConfig = Field(
        default_factory=lambda: ExtractionConfig(providers=default_extraction_providers())
    )
    corpus: CorpusConfig = Field(default_factory=CorpusConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    def ensure_data_root(self) -> Path:
        path = self.database.url
        if path.startswith("sqlite:///"):
            db_file = Path(path.replace("sqlite:///", "", 1))
            db_file.parent.mkdir(parents=True, exist_ok=True)
            return db_file.parent
        return Path("data")

    def normalized(self) -> "AppConfig":
        payload = self.model_dump(mode="python")
        payload["config_file"] = Path(payload["config_file"])
        payload["extraction"]["providers"] = [
            provider.model_dump(mode="python")
            for provider in normalize_extraction_providers(self.extraction.providers)
        ]
        return AppConfig.model_validate(payload)

    def extraction_provider_map(self) -> Dict[str, ExtractionProviderConfig]:
        return {
            provider.provider_id: provider
            for provider in self.extraction.providers
            if provider.enabled
        }


def default_app_config() -> AppConfig:
    return AppConfig(extraction=ExtractionConfig(providers=default_extraction_providers()))


def normalize_extraction_providers(
    providers: List[ExtractionProviderConfig],
) -> List[ExtractionProviderConfig]:
    normalized: List[ExtractionProviderConfig] = []
    seen: set[str] = set()
    for provider in providers:
        provider_id = provider.provider_id.strip().lower()
        if not provider_id or provider_id in seen:
            continue
        seen.add(provider_id)
        normalized.append(
            provider.model_copy(
                update={
                    "provider_id": provider_id,
                    "type": provider.type.strip().lower() or "openai_compatible",
                }
            )
        )
    if not normalized:
        # Empty or invalid provider list: offline oracle only.
        normalized = [p for p in default_extraction_providers() if p.type == "mock"]
    return normalized
