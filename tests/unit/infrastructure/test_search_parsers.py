"""Tests for search result parsers."""

import pytest

from src.domain.errors import ConfigError, SearchResponseError
from src.infrastructure.search.parsers import (
    BraveParser,
    DuckDuckGoLiteParser,
    GoogleCustomSearchParser,
    LocalSearchParser,
    SearXNGParser,
    get_parser,
)


class TestLocalSearchParser:
    """Self-hosted search server responses."""

    def test_parses_array(self):
        raw = [
            {"url": "https://a.com", "siteName": "A", "textContent": "alpha"},
            {"url": "https://b.com", "siteName": "B", "textContent": "beta"},
        ]
        output = LocalSearchParser().parse(raw)
        assert [r.url for r in output.results] == ["https://a.com", "https://b.com"]
        assert output.results[1].site_name == "B"
        assert output.results[1].text_content == "beta"

    def test_missing_site_name_is_lenient(self):
        raw = [
            {"url": "https://a.com", "textContent": "alpha"},
            {"url": "https://b.com", "siteName": "B", "textContent": "beta"},
        ]
        output = LocalSearchParser().parse(raw)
        assert len(output.results) == 2
        assert output.results[0].site_name == ""
        assert output.results[0].text_content == "alpha"

    def test_null_fields_become_empty(self):
        output = LocalSearchParser().parse([{"url": None, "siteName": 42}])
        assert output.results[0].url == ""
        assert output.results[0].site_name == "42"

    def test_non_object_elements_are_skipped(self):
        output = LocalSearchParser().parse(["junk", {"url": "https://a.com"}])
        assert [r.url for r in output.results] == ["https://a.com"]

    @pytest.mark.parametrize("raw", [{"results": []}, "text", 3, None])
    def test_non_array_is_rejected(self, raw):
        with pytest.raises(SearchResponseError) as exc:
            LocalSearchParser().parse(raw)
        assert exc.value.provider == "local"


class TestObjectListParsers:
    def test_searxng(self):
        raw = {"results": [{"url": "https://s.org", "title": "S", "content": "snippet"}]}
        result = SearXNGParser().parse(raw).results[0]
        assert (result.url, result.site_name, result.text_content) == ("https://s.org", "S", "snippet")

    def test_brave_nested_container(self):
        raw = {"web": {"results": [{"url": "https://b.org", "title": "B", "description": "desc"}]}}
        assert BraveParser().parse(raw).results[0].text_content == "desc"

    def test_google_custom_search(self):
        raw = {"items": [{"link": "https://g.dev/x", "displayLink": "g.dev", "snippet": "g"}]}
        result = GoogleCustomSearchParser().parse(raw).results[0]
        assert result.url == "https://g.dev/x"
        assert result.site_name == "g.dev"

    def test_missing_container_means_no_results(self):
        assert GoogleCustomSearchParser().parse({"kind": "customsearch#search"}).is_empty

    def test_container_not_a_list_is_rejected(self):
        with pytest.raises(SearchResponseError):
            SearXNGParser().parse({"results": "oops"})

    def test_top_level_array_is_rejected(self):
        with pytest.raises(SearchResponseError):
            BraveParser().parse([])

    def test_nested_container_of_wrong_type_is_rejected(self):
        with pytest.raises(SearchResponseError, match="'web' to be an object") as exc:
            BraveParser().parse({"web": [{"url": "https://a"}]})
        assert exc.value.provider == "brave"

    def test_missing_nested_container_means_no_results(self):
        assert BraveParser().parse({"web": {"type": "search"}}).is_empty
        assert BraveParser().parse({"query": {"original": "q"}}).is_empty


class TestDuckDuckGoLiteParser:
    def test_parses_links_and_snippets(self):
        page = """
        <a rel="nofollow" href="https://example.com/page" class="result-link">Example &amp; Co</a>
        <td class="result-snippet">An <b>example</b> snippet</td>
        <a rel="nofollow" href="https://duckduckgo.com/y.js">ad</a>
        """
        output = DuckDuckGoLiteParser().parse(page)
        assert len(output.results) == 1
        assert output.results[0].site_name == "Example & Co"

    def test_json_body_is_rejected(self):
        with pytest.raises(SearchResponseError):
            DuckDuckGoLiteParser().parse({"a": 1})


def test_get_parser_by_kind():
    assert get_parser("Local").name == "local"


def test_get_parser_unknown_kind():
    with pytest.raises(ConfigError):
        get_parser("bing")
