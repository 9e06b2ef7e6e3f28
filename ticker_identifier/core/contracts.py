from __future__ import annotations

from typing import List, Optional, Protocol

from ticker_identifier.core.types import Security


# Structural interfaces for the two external collaborators of the resolution core.
class EntityExtractionProvider(Protocol):
    provider_id: str

    async def extract(self, prompt: str, api_key: Optional[str] = None) -> str:
        ...


class SecuritiesProvider(Protocol):
    provider_id: str

    async def fetch(self) -> List[Security]:
        ...
