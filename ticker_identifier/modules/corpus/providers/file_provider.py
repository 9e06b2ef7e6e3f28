from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson
from pydantic import ValidationError as PydanticValidationError

from ticker_identifier.core.errors import CorpusUnavailableError
from ticker_identifier.core.types import Security

logger = logging.getLogger(__name__)


class FileSecuritiesProvider:
    """Offline corpus from a JSON list, a ``{"stocks": [...]}`` object or a CSV file."""

    provider_id = "file"

    def __init__(self, path: Optional[Path]) -> None:
        self.path = Path(path) if path else None

    async def fetch(self) -> List[Security]:
        if self.path is None or not self.path.exists():
            raise CorpusUnavailableError(f"Corpus file not found: {self.path}")
        if self.path.suffix.lower() == ".csv":
            rows = self._read_csv()
        else:
            rows = self._read_json()
        securities: List[Security] = []
        for line_no, row in enumerate(rows, start=1):
            try:
                security = Security.model_validate(row)
            except PydanticValidationError as exc:
                logger.warning("skipping corpus row %d in %s: %s", line_no, self.path, exc)
                continue
            if security.symbol and security.name:
                securities.append(security)
        logger.info("loaded %d securities from %s", len(securities), self.path)
        return securities

    def _read_json(self) -> List[Dict[str, Any]]:
        payload = orjson.loads(self.path.read_bytes())
        if isinstance(payload, dict):
            payload = payload.get("stocks", [])
        if not isinstance(payload, list):
            raise CorpusUnavailableError(f"Unexpected corpus layout in {self.path}")
        return [row for row in payload if isinstance(row, dict)]

    def _read_csv(self) -> List[Dict[str, Any]]:
        with self.path.open("r", encoding="utf-8", newline="") as handle:
            return list(csv.DictReader(handle))
