"""Search backend adapter - executes one search call against a provider config.

Serializes the query payload by the provider's request content type, sends it
with the declared verb under the provider timeout, decodes the body by the
response content type and hands it to the provider's parser.
Nothing is retried; every failure maps to a SearchError subclass.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import httpx

from src.domain.errors import (
    EmptySearchResultError,
    SearchError,
    SearchRequestError,
    SearchResponseError,
    SearchTimeoutError,
    SearchTransportError,
)
from src.domain.ports.search import SearchOutput
from src.infrastructure.search.config import ContentType, HttpMethod, SearchProviderConfig
from src.infrastructure.services.http_pool import get_http_client

logger = logging.getLogger(__name__)

_FORM_SCALARS = (str, int, float, bool)


def _form_payload(provider: SearchProviderConfig, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Form/query-string payloads only hold scalars (or lists of scalars)."""
    for key, value in payload.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        if not all(isinstance(v, _FORM_SCALARS) for v in values):
            raise SearchRequestError(
                f"field {key!r} of type {type(value).__name__} cannot be form-encoded",
                provider=provider.name,
            )
    return dict(payload)


def _json_payload(provider: SearchProviderConfig, payload: Mapping[str, Any]) -> str:
    try:
        return json.dumps(dict(payload))
    except (TypeError, ValueError) as e:
        raise SearchRequestError(f"payload is not JSON serializable: {e}", provider=provider.name) from e


def build_request_kwargs(provider: SearchProviderConfig, payload: Mapping[str, Any]) -> dict[str, Any]:
    """httpx request kwargs for the provider's verb and request content type."""
    headers = dict(provider.extra_headers)
    params: dict[str, Any] = dict(provider.extra_params)
    kwargs: dict[str, Any] = {}

    if provider.http_method == HttpMethod.GET:
        params.update(_form_payload(provider, payload))
    elif provider.request_content_type == ContentType.JSON:
        kwargs["content"] = _json_payload(provider, payload)
        headers.setdefault("Content-Type", "application/json")
    else:
        kwargs["data"] = _form_payload(provider, payload)

    if provider.response_content_type == ContentType.JSON:
        headers.setdefault("Accept", "application/json")
    if params:
        kwargs["params"] = params
    kwargs["headers"] = headers
    return kwargs


def decode_body(provider: SearchProviderConfig, response: httpx.Response) -> Any:
    """Decode the body by the declared response content type."""
    if provider.response_content_type == ContentType.JSON:
        try:
            return response.json()
        except ValueError as e:
            raise SearchResponseError(f"response body is not valid JSON: {e}", provider=provider.name) from e
    return response.text


class SearchBackendAdapter:
    """Runs search calls. Stateless between calls."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        """Use the given client, or the shared HTTP pool when None."""
        self._client = client

    @asynccontextmanager
    async def _client_ctx(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with get_http_client() as client:
                yield client

    async def search(self, provider: SearchProviderConfig, query: str) -> SearchOutput:
        """Build the provider's payload for a plain-text query and perform the search."""
        return await self.perform_search(provider, provider.build_payload(query))

    async def perform_search(self, provider: SearchProviderConfig, query_payload: Mapping[str, Any]) -> SearchOutput:
        """Execute one search call.

        Raises:
            SearchTimeoutError: no response within provider.timeout_ms
            SearchTransportError: connection/DNS failure
            SearchResponseError: non-2xx status or malformed body
            EmptySearchResultError: the provider returned zero results
            SearchRequestError: payload does not fit the request content type

        """
        kwargs = build_request_kwargs(provider, query_payload)
        method = provider.http_method.value
        logger.debug("search[%s]: %s %s", provider.name, method, provider.endpoint)

        try:
            async with self._client_ctx() as client:
                response = await asyncio.wait_for(
                    client.request(method, provider.endpoint, timeout=provider.timeout_s, **kwargs),
                    timeout=provider.timeout_s,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning("search[%s]: timed out after %dms", provider.name, provider.timeout_ms)
            raise SearchTimeoutError(f"no response within {provider.timeout_ms}ms", provider=provider.name) from e
        except httpx.TransportError as e:
            logger.warning("search[%s]: transport error: %s", provider.name, e)
            raise SearchTransportError(f"transport error: {e}", provider=provider.name) from e

        if not response.is_success:
            logger.warning(
                "search[%s]: HTTP %s: %s", provider.name, response.status_code, response.text[:200]
            )
            raise SearchResponseError(f"HTTP status {response.status_code}", provider=provider.name)

        raw = decode_body(provider, response)
        try:
            output = provider.parser.parse(raw)
        except SearchError:
            raise
        except (TypeError, ValueError, AttributeError) as e:
            logger.error("search[%s]: parser failed: %s", provider.name, e, exc_info=True)
            raise SearchResponseError(f"parser failed: {e}", provider=provider.name) from e

        if output.is_empty:
            logger.info("search[%s]: no results", provider.name)
            raise EmptySearchResultError("no results", provider=provider.name)

        output = output.truncated(provider.max_results)
        logger.debug("search[%s]: %d results", provider.name, len(output.results))
        return output
