class TickerIdentifierError(Exception):
    """Base exception for application-level errors."""


class ProviderNotFoundError(TickerIdentifierError):
    """Raised when a provider id cannot be resolved."""


class ProviderExecutionError(TickerIdentifierError):
    """Raised when a provider fails to execute."""


class ValidationError(TickerIdentifierError):
    """Raised when request payload fails domain-level validation."""


class ExtractionError(TickerIdentifierError):
    """Raised when the entity-extraction oracle cannot produce output."""


class CorpusUnavailableError(TickerIdentifierError):
    """Raised when the securities corpus cannot be loaded."""


class TickerResolutionError(TickerIdentifierError):
    """Raised when a resolution run fails after it has started."""

    def __init__(self, message: str = "Failed to extract tickers") -> None:
        super().__init__(message)
