from __future__ import annotations

import logging
from typing import Any, List, Optional

from ticker_identifier.core.errors import CorpusUnavailableError, ProviderExecutionError
from ticker_identifier.core.types import Security
from ticker_identifier.infra.http.client import HttpClient

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("symbol", "name", "exchange", "exchangeShortName")


def parse_stock_list(payload: Any) -> List[Security]:
    if not isinstance(payload, list):
        raise ProviderExecutionError("Unexpected stock list payload")
    securities: List[Security] = []
    for row in payload:
        if not isinstance(row, dict):
            continue
        if not all(row.get(field) for field in _REQUIRED_FIELDS):
            continue
        securities.append(
            Security(
                symbol=row["symbol"],
                name=row["name"],
                exchange=row["exchange"],
                exchange_short_name=row["exchangeShortName"],
                type=row.get("type") or "",
            )
        )
    return securities


class FmpSecuritiesProvider:
    """Financial Modeling Prep ``stock/list`` endpoint."""

    provider_id = "fmp"

    def __init__(self, url: str, api_key: Optional[str], timeout_seconds: int = 60) -> None:
        self.url = url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    async def fetch(self) -> List[Security]:
        if not self.api_key:
            raise CorpusUnavailableError("FMP API key not configured")
        logger.info("fetching stock list from %s", self.url)
        async with HttpClient(timeout_seconds=self.timeout_seconds) as client:
            payload = await client.get_json(self.url, params={"apikey": self.api_key})
        securities = parse_stock_list(payload)
        logger.info(
            "fmp returned %d usable records of %d",
            len(securities),
            len(payload),
        )
        return securities
