from ticker_identifier.modules.corpus.providers.file_provider import FileSecuritiesProvider
from ticker_identifier.modules.corpus.providers.fmp_provider import FmpSecuritiesProvider

__all__ = [
    "FileSecuritiesProvider",
    "FmpSecuritiesProvider",
]
