"""Dependency Injection Container - centralized service management."""

import logging
from functools import cached_property

from src.application.ingest.use_case import IngestUseCase
from src.application.rag_chat.use_case import RagChatUseCase
from src.domain.errors import StoreError
from src.domain.ports.config import AppConfig
from src.domain.ports.embeddings import EmbeddingsPort
from src.domain.ports.llm import LLMPort
from src.domain.services.chat_templates import ChatTemplate
from src.domain.services.context_merger import ContextMerger
from src.infrastructure.config import load_config
from src.infrastructure.rag.chromadb_store import ChromaDBVectorStore
from src.infrastructure.rag.chunker import DocumentChunker
from src.infrastructure.rag.indexer import EmbeddingIndexer
from src.infrastructure.rag.retrieval import RetrievalEngine
from src.infrastructure.search.backend import SearchBackendAdapter
from src.infrastructure.search.config import SearchProviderConfig
from src.infrastructure.search.providers import build_provider_configs

logger = logging.getLogger(__name__)


class Container:
    """Dependency Injection Container with lazy initialization.

    All dependencies are created on first access and cached. Configuration
    derived objects (providers, merger) are immutable and shared by every
    request.

    Usage:
        container = Container()
        use_case = container.rag_chat_use_case
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        llm: LLMPort | None = None,
        embeddings: EmbeddingsPort | None = None,
        vector_store=None,
        search_backend: SearchBackendAdapter | None = None,
    ):
        """Initialize container; keyword overrides replace the real adapters (tests)."""
        self._config_override = config
        self._llm_override = llm
        self._embeddings_override = embeddings
        self._vector_store_override = vector_store
        self._search_backend_override = search_backend
        self._retrieval: RetrievalEngine | None = None
        self._rag_chat: RagChatUseCase | None = None

    @cached_property
    def config(self) -> AppConfig:
        """Application configuration."""
        if self._config_override:
            return self._config_override
        return load_config()

    @cached_property
    def chat_template(self) -> ChatTemplate:
        """Prompt template of the chat model. Raises ConfigError if unknown."""
        return ChatTemplate.parse(self.config.llm.prompt_template)

    @cached_property
    def llm(self) -> LLMPort:
        """Chat-completion adapter based on config provider."""
        if self._llm_override is not None:
            return self._llm_override
        if self.config.llm.provider == "lm_studio":
            from src.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter

            return OpenAICompatibleAdapter(self.config.openai_compatible, self.config.llm.chat_model)

        from src.infrastructure.llm.ollama import OllamaAdapter

        return OllamaAdapter(self.config.ollama, self.config.llm.chat_model)

    @cached_property
    def embeddings(self) -> EmbeddingsPort:
        """Embeddings adapter based on config provider."""
        if self._embeddings_override is not None:
            return self._embeddings_override
        if self.config.llm.provider == "lm_studio":
            from src.infrastructure.embeddings.openai_compatible import (
                OpenAICompatibleEmbeddingsAdapter,
            )

            return OpenAICompatibleEmbeddingsAdapter(
                self.config.openai_compatible,
                self.config.embeddings,
            )

        from src.infrastructure.embeddings.ollama import OllamaEmbeddingsAdapter

        return OllamaEmbeddingsAdapter(self.config.ollama, self.config.embeddings)

    @cached_property
    def vector_store(self) -> ChromaDBVectorStore:
        """Vector store. Raises StoreError when it cannot be opened."""
        if self._vector_store_override is not None:
            return self._vector_store_override
        return ChromaDBVectorStore(self.config.rag)

    @cached_property
    def merger(self) -> ContextMerger:
        """Context merger with the startup policy (downgraded if the template lacks a system slot)."""
        rag = self.config.rag
        return ContextMerger(rag.policy, self.chat_template, rag.rag_prompt)

    @cached_property
    def search_providers(self) -> list[SearchProviderConfig]:
        """Enabled web search providers. Raises ConfigError on bad entries."""
        return build_provider_configs(self.config.web_search)

    @cached_property
    def search_backend(self) -> SearchBackendAdapter:
        if self._search_backend_override is not None:
            return self._search_backend_override
        return SearchBackendAdapter()

    @cached_property
    def chunker(self) -> DocumentChunker:
        return DocumentChunker()

    @cached_property
    def indexer(self) -> EmbeddingIndexer:
        return EmbeddingIndexer(self.embeddings, self.vector_store, batch_size=self.config.rag.batch_size)

    @property
    def retrieval(self) -> RetrievalEngine | None:
        """Retrieval engine, or None when RAG is disabled or the store cannot be opened.

        Only a successfully built engine is kept; while the store is down every
        access tries to open it again.
        """
        rag = self.config.rag
        if not rag.enabled:
            return None
        if self._retrieval is None:
            try:
                store = self.vector_store
            except StoreError as e:
                logger.warning("Vector store unavailable, RAG retrieval disabled for now: %s", e)
                return None
            self._retrieval = RetrievalEngine(
                self.embeddings,
                store,
                limit=rag.limit,
                score_threshold=rag.score_threshold,
            )
        return self._retrieval

    @cached_property
    def ingest_use_case(self) -> IngestUseCase:
        """Ingestion use case. Raises StoreError when the store cannot be opened."""
        return IngestUseCase(
            self.chunker,
            self.indexer,
            chunk_capacity=self.config.rag.chunk_capacity,
            vector_store=self.vector_store,
        )

    @property
    def rag_chat_use_case(self) -> RagChatUseCase:
        """Chat use case; rebuilt when the retrieval engine changes (store came back)."""
        retrieval = self.retrieval
        if self._rag_chat is None or self._rag_chat.retrieval is not retrieval:
            self._rag_chat = self._build_rag_chat(retrieval)
        return self._rag_chat

    def _build_rag_chat(self, retrieval: RetrievalEngine | None) -> RagChatUseCase:
        rag = self.config.rag
        return RagChatUseCase(
            llm=self.llm,
            merger=self.merger,
            retrieval=retrieval,
            providers=self.search_providers,
            search_backend=self.search_backend,
            retrieval_timeout_s=rag.retrieval_timeout_s,
            request_timeout_s=rag.request_timeout_s,
            default_max_tokens=self.config.llm.max_tokens,
        )

    def validate(self) -> None:
        """Build every configuration-derived object now so bad config fails at startup."""
        _ = self.chat_template
        _ = self.merger
        _ = self.search_providers

    def reset(self) -> None:
        """Reset all cached instances (useful for testing)."""
        self._retrieval = None
        self._rag_chat = None
        for attr in list(self.__dict__.keys()):
            if not attr.startswith("_"):
                delattr(self, attr)


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get or create global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container) -> None:
    """Install a prebuilt container (tests, embedding the app)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    if _container:
        _container.reset()
    _container = None
