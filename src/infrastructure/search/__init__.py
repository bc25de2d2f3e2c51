"""External web search - provider configs, parsers, backend adapter."""

from src.infrastructure.search.backend import SearchBackendAdapter
from src.infrastructure.search.config import ContentType, HttpMethod, SearchProviderConfig
from src.infrastructure.search.providers import build_provider_config, build_provider_configs
from src.infrastructure.search.web_search import WebSearchOutcome, multi_search, search_all

__all__ = [
    "ContentType",
    "HttpMethod",
    "SearchBackendAdapter",
    "SearchProviderConfig",
    "WebSearchOutcome",
    "build_provider_config",
    "build_provider_configs",
    "multi_search",
    "search_all",
]
