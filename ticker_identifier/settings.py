from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TICKER_IDENTIFIER_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    config_file: Path = Path("config/settings.yaml")
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("TICKER_IDENTIFIER_OPENAI_API_KEY", "OPENAI_API_KEY", "openai_api_key"),
    )
    openrouter_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "TICKER_IDENTIFIER_OPENROUTER_API_KEY", "OPENROUTER_API_KEY", "openrouter_api_key"
        ),
    )
    deepseek_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "TICKER_IDENTIFIER_DEEPSEEK_API_KEY", "DEEPSEEK_API_KEY", "deepseek_api_key"
        ),
    )
    fmp_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("TICKER_IDENTIFIER_FMP_API_KEY", "FMP_API_KEY", "fmp_api_key"),
    )

    def credential(self, setting_name: Optional[str]) -> Optional[str]:
        if not setting_name:
            return None
        value = getattr(self, setting_name, None)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None
