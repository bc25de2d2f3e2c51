"""Search provider configuration - immutable description of one search backend."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from src.domain.errors import ConfigError
from src.domain.ports.search import ResultParser


class ContentType(str, Enum):
    """Request/response body encodings a provider may speak."""

    JSON = "json"
    FORM = "form"
    HTML = "html"

    @classmethod
    def parse(cls, value: "str | ContentType") -> "ContentType":
        if isinstance(value, ContentType):
            return value
        aliases = {
            "application/json": cls.JSON,
            "application/x-www-form-urlencoded": cls.FORM,
            "text/html": cls.HTML,
        }
        key = value.strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ConfigError(f"Unknown content type {value!r}") from None


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"

    @classmethod
    def parse(cls, value: "str | HttpMethod") -> "HttpMethod":
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ConfigError(f"Unsupported HTTP method {value!r}") from None


# (query, max_results) -> payload in the provider's own field names
QueryBuilder = Callable[[str, int], dict[str, Any]]


def _default_query_builder(query: str, max_results: int) -> dict[str, Any]:
    return {"query": query, "max_results": max_results}


@dataclass(frozen=True)
class SearchProviderConfig:
    """One external search backend. Built once at startup, shared read-only."""

    name: str
    endpoint: str
    parser: ResultParser
    request_content_type: ContentType = ContentType.JSON
    response_content_type: ContentType = ContentType.JSON
    http_method: HttpMethod = HttpMethod.POST
    max_results: int = 5
    timeout_ms: int = 1000
    extra_headers: Mapping[str, str] = field(default_factory=dict)
    extra_params: Mapping[str, str] = field(default_factory=dict)
    query_builder: QueryBuilder = _default_query_builder

    def __post_init__(self) -> None:
        # Normalise string inputs and freeze mappings (frozen dataclass: go through object.__setattr__)
        object.__setattr__(self, "request_content_type", ContentType.parse(self.request_content_type))
        object.__setattr__(self, "response_content_type", ContentType.parse(self.response_content_type))
        object.__setattr__(self, "http_method", HttpMethod.parse(self.http_method))
        object.__setattr__(self, "extra_headers", MappingProxyType(dict(self.extra_headers or {})))
        object.__setattr__(self, "extra_params", MappingProxyType(dict(self.extra_params or {})))

        if not self.name.strip():
            raise ConfigError("Search provider name must not be empty")
        if not self.endpoint.startswith(("http://", "https://")):
            raise ConfigError(f"Search provider {self.name!r}: endpoint must be an http(s) URL, got {self.endpoint!r}")
        if self.max_results < 1:
            raise ConfigError(f"Search provider {self.name!r}: max_results must be >= 1")
        if self.timeout_ms < 1:
            raise ConfigError(f"Search provider {self.name!r}: timeout_ms must be >= 1")
        if self.http_method == HttpMethod.GET and self.request_content_type != ContentType.FORM:
            raise ConfigError(
                f"Search provider {self.name!r}: GET requests carry the query in the URL, "
                f"request content type must be form (got {self.request_content_type.value})"
            )
        if self.request_content_type == ContentType.HTML:
            raise ConfigError(f"Search provider {self.name!r}: html is not a request content type")

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0

    def build_payload(self, query: str) -> dict[str, Any]:
        """Query payload in this provider's request shape."""
        return self.query_builder(query, self.max_results)
