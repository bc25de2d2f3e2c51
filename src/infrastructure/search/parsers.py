"""Result parsers - one per provider wire shape.

Every parser maps a decoded provider response into a SearchOutput.
Parsing is lenient: missing fields become empty strings and odd elements are
skipped, so a partially broken response still yields the usable results.
Only a wrong top-level shape is rejected (SearchResponseError).
"""

import html
import logging
import re
from typing import Any

from src.domain.errors import ConfigError, SearchResponseError
from src.domain.ports.search import ResultParser, SearchOutput, SearchResult

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    """Field value as text; missing/null becomes empty."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _clean_html(text: str) -> str:
    """Remove HTML entities and tags."""
    text = html.unescape(text)
    return re.sub(r"<[^>]+>", "", text)


class _ObjectListParser:
    """Shared logic for providers answering {..., <container>: [ {...}, ... ]}."""

    name = ""
    container_path: tuple[str, ...] = ("results",)
    url_field = "url"
    site_field = "title"
    text_field = "content"

    def parse(self, raw_response: Any) -> SearchOutput:
        if not isinstance(raw_response, dict):
            msg = f"expected a JSON object, got {type(raw_response).__name__}"
            logger.error("%s parser: %s", self.name, msg)
            raise SearchResponseError(msg, provider=self.name)

        items: Any = raw_response
        for depth, key in enumerate(self.container_path):
            if not isinstance(items, dict):
                parent = ".".join(self.container_path[:depth])
                msg = f"expected '{parent}' to be an object, got {type(items).__name__}"
                logger.error("%s parser: %s", self.name, msg)
                raise SearchResponseError(msg, provider=self.name)
            items = items.get(key)
            if items is None:
                # Valid object without the container: no results
                return SearchOutput()

        if not isinstance(items, list):
            msg = f"expected '{'.'.join(self.container_path)}' to be a list, got {type(items).__name__}"
            logger.error("%s parser: %s", self.name, msg)
            raise SearchResponseError(msg, provider=self.name)

        results = []
        for item in items:
            if not isinstance(item, dict):
                logger.debug("%s parser: skipping non-object result %r", self.name, item)
                continue
            results.append(self._to_result(item))
        return SearchOutput(results=results)

    def _to_result(self, item: dict) -> SearchResult:
        return SearchResult(
            url=_text(item.get(self.url_field)),
            site_name=_text(item.get(self.site_field)),
            text_content=_text(item.get(self.text_field)),
        )


class LocalSearchParser:
    """Self-hosted search server: top-level array of {url, siteName, textContent}."""

    name = "local"

    def parse(self, raw_response: Any) -> SearchOutput:
        if not isinstance(raw_response, list):
            msg = "No results returned from server"
            logger.error("%s parser: %s (got %s)", self.name, msg, type(raw_response).__name__)
            raise SearchResponseError(msg, provider=self.name)

        results = []
        for item in raw_response:
            if not isinstance(item, dict):
                logger.debug("local parser: skipping non-object result %r", item)
                continue
            results.append(
                SearchResult(
                    url=_text(item.get("url")),
                    site_name=_text(item.get("siteName")),
                    text_content=_text(item.get("textContent")),
                )
            )
        return SearchOutput(results=results)


class SearXNGParser(_ObjectListParser):
    name = "searxng"


class TavilyParser(_ObjectListParser):
    name = "tavily"


class BraveParser(_ObjectListParser):
    name = "brave"
    container_path = ("web", "results")
    text_field = "description"


class GoogleCustomSearchParser(_ObjectListParser):
    name = "google"
    container_path = ("items",)
    url_field = "link"
    site_field = "displayLink"
    text_field = "snippet"


class DuckDuckGoLiteParser:
    """DuckDuckGo Lite HTML page."""

    name = "duckduckgo"

    _link_pattern = re.compile(r'<a rel="nofollow" href="([^"]+)"[^>]*>([^<]+)</a>', re.IGNORECASE)
    _snippet_pattern = re.compile(r'<td[^>]*class="result-snippet"[^>]*>([^<]+)</td>', re.IGNORECASE)

    def parse(self, raw_response: Any) -> SearchOutput:
        if not isinstance(raw_response, str):
            msg = f"expected an HTML page, got {type(raw_response).__name__}"
            logger.error("duckduckgo parser: %s", msg)
            raise SearchResponseError(msg, provider=self.name)

        links = self._link_pattern.findall(raw_response)
        snippets = self._snippet_pattern.findall(raw_response)

        results: list[SearchResult] = []
        for url, title in links:
            if not url.startswith("http") or "duckduckgo.com" in url:
                continue
            snippet = snippets[len(results)] if len(results) < len(snippets) else ""
            results.append(
                SearchResult(
                    url=url,
                    site_name=_clean_html(title).strip(),
                    text_content=_clean_html(snippet).strip(),
                )
            )
        return SearchOutput(results=results)


PARSERS: dict[str, type] = {
    LocalSearchParser.name: LocalSearchParser,
    SearXNGParser.name: SearXNGParser,
    TavilyParser.name: TavilyParser,
    BraveParser.name: BraveParser,
    GoogleCustomSearchParser.name: GoogleCustomSearchParser,
    DuckDuckGoLiteParser.name: DuckDuckGoLiteParser,
}


def get_parser(kind: str) -> ResultParser:
    """Parser instance for a provider kind (selected by configuration)."""
    try:
        return PARSERS[kind.strip().lower()]()
    except KeyError:
        raise ConfigError(f"No result parser for provider kind {kind!r}. Known: {', '.join(PARSERS)}") from None
