from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from ticker_identifier.config import AppConfig, default_app_config


class ConfigStore:
    """YAML persistence for :class:`AppConfig`.

    Credentials live in :class:`AppSettings` (environment / ``.env``) and are
    never part of the YAML payload.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path

    def load(self) -> AppConfig:
        if not self.config_path.exists():
            config = (
                default_app_config()
                .model_copy(update={"config_file": self.config_path})
                .normalized()
            )
            config.ensure_data_root()
            return self.save(config)

        raw = yaml.safe_load(self.config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid config file content: {self.config_path}")
        config = AppConfig.model_validate(raw).normalized()
        config.ensure_data_root()
        if self._should_rewrite_extraction(raw):
            return self.save(config)
        return config.model_copy(update={"config_file": self.config_path})

    def save(self, config: AppConfig) -> AppConfig:
        normalized = config.model_copy(update={"config_file": self.config_path}).normalized()
        normalized.ensure_data_root()
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        payload = normalized.model_dump(mode="json")
        self.config_path.write_text(
            yaml.safe_dump(payload, allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
        return normalized

    def patch(self, patch_data: Dict[str, Any]) -> AppConfig:
        current = self.load()
        payload = current.model_dump(mode="python")
        for key, value in patch_data.items():
            # Section patches merge into the existing section.
            if isinstance(value, dict) and isinstance(payload.get(key), dict):
                payload[key] = {**payload[key], **value}
            else:
                payload[key] = value
        merged = AppConfig.model_validate(payload)
        return self.save(merged)

    @staticmethod
    def _should_rewrite_extraction(raw_config: Dict[str, Any]) -> bool:
        raw_extraction = raw_config.get("extraction")
        if not isinstance(raw_extraction, dict):
            return True
        raw_providers = raw_extraction.get("providers")
        if not isinstance(raw_providers, list) or not raw_providers:
            return True
        for row in raw_providers:
            if not isinstance(row, dict):
                return True
            provider_id = row.get("provider_id")
            if not isinstance(provider_id, str) or provider_id != provider_id.strip().lower():
                return True
        return False
