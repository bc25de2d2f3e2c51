"""RAG chat use case - retrieval, web search, merge, completion.

Per query: IDLE -> RETRIEVING -> MERGING -> READY.
In RETRIEVING the vector path and the web path run as two independent tasks
and are joined before merging. A path that fails or times out contributes no
context; only a failed completion fails the request.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable
from typing import TypeVar

from src.application.rag_chat.dto import QueryState, QueryTrace, RagChatRequest, RagChatResult
from src.domain.entities.documents import RetrievedContext
from src.domain.errors import ModelError, SearchError, StoreError
from src.domain.ports.llm import Conversation, LLMPort
from src.domain.ports.search import SearchOutput
from src.domain.services.context_merger import ContextMerger
from src.infrastructure.rag.retrieval import RetrievalEngine
from src.infrastructure.search.backend import SearchBackendAdapter
from src.infrastructure.search.config import SearchProviderConfig
from src.infrastructure.search.web_search import search_all

logger = logging.getLogger(__name__)

T = TypeVar("T")

VECTOR_PATH = "vector_store"
WEB_PATH = "web_search"


def last_user_content(conversation: Conversation) -> str:
    """Content of the most recent user message, or empty."""
    for message in reversed(conversation):
        if message.role == "user":
            return message.content
    return ""


class RagChatUseCase:
    """Orchestrates one retrieval-augmented completion."""

    def __init__(
        self,
        llm: LLMPort,
        merger: ContextMerger,
        retrieval: RetrievalEngine | None = None,
        providers: list[SearchProviderConfig] | None = None,
        search_backend: SearchBackendAdapter | None = None,
        retrieval_timeout_s: float = 10.0,
        request_timeout_s: float = 180.0,
        default_max_tokens: int | None = None,
    ) -> None:
        """Args:
        retrieval: None disables the vector path
        providers: empty/None disables the web path

        """
        self._llm = llm
        self._merger = merger
        self._retrieval = retrieval
        self._providers = list(providers or [])
        self._search_backend = search_backend or SearchBackendAdapter()
        self._retrieval_timeout = retrieval_timeout_s
        self._request_timeout = request_timeout_s
        self._default_max_tokens = default_max_tokens

    @property
    def merger(self) -> ContextMerger:
        return self._merger

    @property
    def retrieval(self) -> RetrievalEngine | None:
        return self._retrieval

    async def execute(self, request: RagChatRequest) -> RagChatResult:
        """Retrieve, merge and complete.

        Raises:
            ModelError: If the completion fails or the request budget runs out

        """
        started = time.monotonic()
        trace = QueryTrace()
        conversation = list(request.messages)
        query = last_user_content(conversation).strip()

        trace.advance(QueryState.RETRIEVING)
        retrieved, search_output = await asyncio.gather(
            self._bounded(VECTOR_PATH, self._vector_path(query, request), [], trace),
            self._bounded(WEB_PATH, self._web_path(query, request, trace), SearchOutput(), trace),
        )

        trace.advance(QueryState.MERGING)
        merged = self._merger.merge(conversation, retrieved, search_output)
        logger.debug(
            "Merged context: chunks=%d, web_results=%d, policy=%s",
            len(retrieved),
            len(search_output.results),
            self._merger.effective_policy.value,
        )

        content = await self._complete(merged, request, started)
        trace.advance(QueryState.READY)
        return RagChatResult(
            content=content,
            conversation=merged,
            retrieved=retrieved,
            search_output=search_output,
            trace=trace,
        )

    async def _vector_path(self, query: str, request: RagChatRequest) -> list[RetrievedContext]:
        use_rag = request.use_rag if request.use_rag is not None else True
        if not query or not use_rag or self._retrieval is None:
            return []
        return await self._retrieval.retrieve(
            query,
            limit=request.limit,
            score_threshold=request.score_threshold,
        )

    async def _web_path(self, query: str, request: RagChatRequest, trace: QueryTrace) -> SearchOutput:
        use_web = request.use_web_search if request.use_web_search is not None else True
        if not query or not use_web or not self._providers:
            return SearchOutput()
        outcome = await search_all(self._providers, query, self._search_backend)
        for provider, reason in outcome.failures.items():
            trace.degraded[f"{WEB_PATH}:{provider}"] = reason
        if outcome.all_failed:
            logger.warning("Retrieval path %s degraded to no context: every provider failed", WEB_PATH)
            trace.degraded[WEB_PATH] = "all search providers failed"
        return outcome.output

    async def _bounded(self, path: str, coro: Awaitable[T], empty: T, trace: QueryTrace) -> T:
        """Settle one retrieval path: its result, or `empty` on failure/timeout."""
        try:
            return await asyncio.wait_for(coro, timeout=self._retrieval_timeout)
        except asyncio.TimeoutError:
            reason = f"timed out after {self._retrieval_timeout}s"
        except (SearchError, StoreError, ModelError) as e:
            reason = str(e) or type(e).__name__
        logger.warning("Retrieval path %s degraded to no context: %s", path, reason)
        trace.degraded[path] = reason
        return empty

    async def _complete(self, conversation: Conversation, request: RagChatRequest, started: float) -> str:
        remaining = self._request_timeout - (time.monotonic() - started)
        if remaining <= 0:
            raise ModelError("request budget exhausted before completion")
        token_budget = request.max_tokens if request.max_tokens is not None else self._default_max_tokens
        try:
            return await asyncio.wait_for(self._llm.complete(conversation, token_budget), timeout=remaining)
        except asyncio.TimeoutError as e:
            logger.error("Completion timed out after %.1fs", remaining)
            raise ModelError(f"completion timed out after {remaining:.1f}s") from e
