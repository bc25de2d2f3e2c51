"""Domain errors - one hierarchy for every failure the pipeline reports."""


class RagServerError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(RagServerError):
    """Malformed or missing provider, policy or template configuration (fatal at startup)."""


class SearchError(RagServerError):
    """External search failed. Always recoverable: degrades to "no web context"."""

    def __init__(self, message: str, provider: str = "") -> None:
        super().__init__(message)
        self.provider = provider

    def __str__(self) -> str:
        msg = super().__str__()
        return f"[{self.provider}] {msg}" if self.provider else msg


class SearchTimeoutError(SearchError):
    """No response within the provider's timeout budget."""


class SearchTransportError(SearchError):
    """Connection, DNS or other network failure."""


class SearchResponseError(SearchError):
    """Non-2xx status, undecodable body, or a body the parser rejected."""


class EmptySearchResultError(SearchError):
    """Provider answered correctly but returned zero results."""


class SearchRequestError(SearchError):
    """Query payload cannot be serialized to the provider's request content type."""


class StoreError(RagServerError):
    """Vector store rejected or failed an operation."""


class StoreUnavailableError(StoreError):
    """Vector store is unreachable (systemic failure)."""


class IndexingError(RagServerError):
    """Ingestion failed as a whole (not raised for a single bad chunk)."""


class ModelError(RagServerError):
    """Embedding or chat-completion inference failed."""
