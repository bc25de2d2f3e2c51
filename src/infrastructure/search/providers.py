"""Provider catalogue - endpoints, query shapes and headers per search provider.

build_provider_config() turns one SearchProviderSettings entry into an
immutable SearchProviderConfig. Settings may override any default below.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from src.domain.errors import ConfigError
from src.domain.ports.config import SearchProviderSettings, WebSearchConfig
from src.infrastructure.search.config import (
    ContentType,
    HttpMethod,
    QueryBuilder,
    SearchProviderConfig,
)
from src.infrastructure.search.parsers import get_parser

logger = logging.getLogger(__name__)


def build_local_payload(engine: str) -> QueryBuilder:
    """JSON body for the self-hosted search server."""

    def _build(query: str, max_results: int) -> dict[str, Any]:
        return {"term": query, "engine": engine, "maxSearchResults": max_results}

    return _build


def build_ddg_data(query: str, max_results: int) -> dict[str, Any]:
    """POST body for DuckDuckGo."""
    return {"q": query, "kl": "wt-wt"}


def build_searxng_params(query: str, max_results: int) -> dict[str, Any]:
    """Query params for SearXNG JSON API."""
    return {"q": query, "format": "json", "categories": "general"}


def build_brave_params(query: str, max_results: int) -> dict[str, Any]:
    """Query params for Brave Search API."""
    return {"q": query, "count": max_results}


def build_tavily_payload(query: str, max_results: int) -> dict[str, Any]:
    """JSON body for Tavily API."""
    return {"query": query, "max_results": min(max_results, 20), "search_depth": "basic"}


def build_google_params(query: str, max_results: int) -> dict[str, Any]:
    """Query params for Google Custom Search API (key and cx travel as static params)."""
    return {"q": query, "num": min(max_results, 10)}


@dataclass(frozen=True)
class ProviderDefaults:
    endpoint: str | None
    request_content_type: ContentType
    response_content_type: ContentType
    http_method: HttpMethod
    needs_api_key: bool = False
    headers: dict[str, str] = field(default_factory=dict)


DEFAULTS: dict[str, ProviderDefaults] = {
    "local": ProviderDefaults(
        endpoint="http://localhost:3000/search",
        request_content_type=ContentType.JSON,
        response_content_type=ContentType.JSON,
        http_method=HttpMethod.POST,
    ),
    "duckduckgo": ProviderDefaults(
        endpoint="https://lite.duckduckgo.com/lite/",
        request_content_type=ContentType.FORM,
        response_content_type=ContentType.HTML,
        http_method=HttpMethod.POST,
    ),
    "searxng": ProviderDefaults(
        # No public default: instance base URL must be configured
        endpoint=None,
        request_content_type=ContentType.FORM,
        response_content_type=ContentType.JSON,
        http_method=HttpMethod.GET,
    ),
    "brave": ProviderDefaults(
        endpoint="https://api.search.brave.com/res/v1/web/search",
        request_content_type=ContentType.FORM,
        response_content_type=ContentType.JSON,
        http_method=HttpMethod.GET,
        needs_api_key=True,
    ),
    "tavily": ProviderDefaults(
        endpoint="https://api.tavily.com/search",
        request_content_type=ContentType.JSON,
        response_content_type=ContentType.JSON,
        http_method=HttpMethod.POST,
        needs_api_key=True,
    ),
    "google": ProviderDefaults(
        endpoint="https://customsearch.googleapis.com/customsearch/v1",
        request_content_type=ContentType.FORM,
        response_content_type=ContentType.JSON,
        http_method=HttpMethod.GET,
        needs_api_key=True,
    ),
}


def _query_builder(settings: SearchProviderSettings) -> QueryBuilder:
    kind = settings.kind
    if kind == "local":
        return build_local_payload(settings.engine)
    return {
        "duckduckgo": build_ddg_data,
        "searxng": build_searxng_params,
        "brave": build_brave_params,
        "tavily": build_tavily_payload,
        "google": build_google_params,
    }[kind]


def _auth(settings: SearchProviderSettings) -> tuple[dict[str, str], dict[str, str]]:
    """Provider-specific credential headers and static query params."""
    key = settings.api_key or ""
    if settings.kind == "brave":
        return {"X-Subscription-Token": key}, {}
    if settings.kind == "tavily":
        return {"Authorization": f"Bearer {key}"}, {}
    if settings.kind == "google":
        if not settings.cx:
            raise ConfigError(f"Search provider {settings.name!r}: google requires 'cx' (search engine ID)")
        return {}, {"key": key, "cx": settings.cx}
    return {}, {}


def _searxng_endpoint(base: str) -> str:
    base = base.rstrip("/")
    return base if base.endswith("/search") else f"{base}/search"


def build_provider_config(settings: SearchProviderSettings) -> SearchProviderConfig:
    """Build the immutable config for one provider. Raises ConfigError."""
    kind = settings.kind.strip().lower()
    if kind not in DEFAULTS:
        raise ConfigError(f"Search provider {settings.name!r}: unknown kind {settings.kind!r}")
    settings = settings.model_copy(update={"kind": kind})
    defaults = DEFAULTS[kind]

    endpoint = settings.endpoint or defaults.endpoint
    if not endpoint:
        raise ConfigError(f"Search provider {settings.name!r}: endpoint is required for kind {kind!r}")
    if kind == "searxng":
        endpoint = _searxng_endpoint(endpoint)
    if defaults.needs_api_key and not settings.api_key:
        raise ConfigError(f"Search provider {settings.name!r}: kind {kind!r} requires an api_key")

    auth_headers, auth_params = _auth(settings)
    headers = {**defaults.headers, **auth_headers, **settings.extra_headers}

    return SearchProviderConfig(
        name=settings.name,
        endpoint=endpoint,
        parser=get_parser(kind),
        request_content_type=settings.request_content_type or defaults.request_content_type,
        response_content_type=settings.response_content_type or defaults.response_content_type,
        http_method=settings.http_method or defaults.http_method,
        max_results=settings.max_results,
        timeout_ms=settings.timeout_ms,
        extra_headers=headers,
        extra_params=auth_params,
        query_builder=_query_builder(settings),
    )


def build_provider_configs(config: WebSearchConfig) -> list[SearchProviderConfig]:
    """Configs for every enabled provider, in configuration order."""
    if not config.enabled:
        return []
    providers = []
    names: set[str] = set()
    for settings in config.providers:
        if not settings.enabled:
            logger.debug("Search provider %s disabled, skipping", settings.name)
            continue
        if settings.name in names:
            raise ConfigError(f"Duplicate search provider name {settings.name!r}")
        names.add(settings.name)
        providers.append(build_provider_config(settings))
    return providers
