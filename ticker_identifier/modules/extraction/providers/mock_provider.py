from __future__ import annotations

import re
from typing import Optional

from ticker_identifier.modules.extraction.prompt_builder import QUERY_MARKER

_TICKER_TOKEN_RE = re.compile(r"\b[A-Z][A-Z0-9]{1,5}(?:\.[A-Z]{1,3})?\b|\b\d{4,6}(?:\.[A-Z]{2})?\b")


class MockExtractionProvider:
    """Offline oracle: echoes ticker-looking tokens, else the query itself."""

    provider_id = "mock"

    async def extract(self, prompt: str, api_key: Optional[str] = None) -> str:
        query = prompt.rsplit(QUERY_MARKER, 1)[-1].strip()
        tickers = list(dict.fromkeys(_TICKER_TOKEN_RE.findall(query)))
        if tickers:
            return ", ".join(tickers)
        return query.replace(";", " ").replace(",", " ").strip()
