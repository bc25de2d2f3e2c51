"""Search Port - normalized web search results and the parser interface."""

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class SearchResult:
    """Single normalized search result."""

    url: str = ""
    site_name: str = ""
    text_content: str = ""


@dataclass(frozen=True)
class SearchOutput:
    """Results of one search call, in provider order (not re-sorted)."""

    results: list[SearchResult] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.results

    def truncated(self, max_results: int) -> "SearchOutput":
        """Return a copy holding at most max_results results."""
        if len(self.results) <= max_results:
            return self
        return SearchOutput(results=list(self.results[:max_results]))


class ResultParser(Protocol):
    """Maps one provider's raw response into a SearchOutput.

    Raises SearchResponseError on a malformed top-level shape.
    """

    name: str

    def parse(self, raw_response: Any) -> SearchOutput:
        ...
