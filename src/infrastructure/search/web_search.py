"""Web search across every configured provider, in parallel.

A failing provider only loses its own results. Results are concatenated in
provider configuration order and de-duplicated by normalized URL.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from urllib.parse import urlparse, urlunparse

from src.domain.errors import EmptySearchResultError, SearchError
from src.domain.ports.search import SearchOutput, SearchResult
from src.infrastructure.search.backend import SearchBackendAdapter
from src.infrastructure.search.config import SearchProviderConfig

logger = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Normalize URL for deduplication.

    - Lowercase scheme and domain
    - Remove www prefix
    - Remove trailing slash
    - Remove fragment
    - Keep query params (may be significant)
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        logger.debug("URL normalization failed for %s", url, exc_info=True)
        return url
    netloc = parsed.netloc.lower()
    if netloc.startswith("www."):
        netloc = netloc[4:]
    path = parsed.path.rstrip("/") if parsed.path != "/" else ""
    return urlunparse((parsed.scheme.lower(), netloc, path, parsed.params, parsed.query, ""))


def dedupe_results(results: Sequence[SearchResult]) -> list[SearchResult]:
    """Drop later results whose normalized URL was already seen. URL-less results are kept."""
    seen: set[str] = set()
    unique: list[SearchResult] = []
    for r in results:
        if r.url:
            key = normalize_url(r.url)
            if key in seen:
                continue
            seen.add(key)
        unique.append(r)
    return unique


@dataclass
class WebSearchOutcome:
    """Merged results plus the reason each failed provider gave."""

    output: SearchOutput = field(default_factory=SearchOutput)
    failures: dict[str, str] = field(default_factory=dict)
    queried: int = 0

    @property
    def all_failed(self) -> bool:
        """True when providers were queried and every one of them failed."""
        return self.queried > 0 and len(self.failures) == self.queried


async def _settle(
    backend: SearchBackendAdapter, provider: SearchProviderConfig, query: str
) -> SearchOutput | SearchError:
    try:
        return await backend.search(provider, query)
    except EmptySearchResultError:
        return SearchOutput()
    except SearchError as e:
        logger.warning("Web search via %s failed: %s", provider.name, e)
        return e


async def search_all(
    providers: Sequence[SearchProviderConfig],
    query: str,
    backend: SearchBackendAdapter | None = None,
) -> WebSearchOutcome:
    """Query all providers concurrently; merge results and collect failures.

    An empty result is not a failure. A blank query or no providers queries nothing.
    """
    if not query.strip() or not providers:
        return WebSearchOutcome()

    backend = backend or SearchBackendAdapter()
    settled = await asyncio.gather(*(_settle(backend, p, query) for p in providers))

    merged: list[SearchResult] = []
    failures: dict[str, str] = {}
    for provider, result in zip(providers, settled):
        if isinstance(result, SearchError):
            failures[provider.name] = str(result)
        else:
            merged.extend(result.results)
    return WebSearchOutcome(
        output=SearchOutput(results=dedupe_results(merged)),
        failures=failures,
        queried=len(providers),
    )


async def multi_search(
    providers: Sequence[SearchProviderConfig],
    query: str,
    backend: SearchBackendAdapter | None = None,
) -> SearchOutput:
    """Merged results of every provider; failing providers contribute nothing."""
    return (await search_all(providers, query, backend)).output
