from ticker_identifier.modules.extraction.providers.mock_provider import MockExtractionProvider
from ticker_identifier.modules.extraction.providers.openai_compatible_provider import (
    OpenAICompatibleExtractionProvider,
)

__all__ = [
    "MockExtractionProvider",
    "OpenAICompatibleExtractionProvider",
]
