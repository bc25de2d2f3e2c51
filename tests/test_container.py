"""Container wiring tests."""

import pytest

from src.api.container import Container, set_container
from src.domain.errors import StoreUnavailableError
from src.domain.ports.config import AppConfig, RAGConfig, WebSearchConfig
from tests.fakes import EchoLLM, InMemoryVectorStore, KeywordEmbeddings


class FlakyStoreContainer(Container):
    """Vector store that cannot be opened for the first `failures` attempts."""

    attempts = 0

    def __init__(self, store, failures: int = 1, rag_enabled: bool = True):
        super().__init__(
            AppConfig(rag=RAGConfig(enabled=rag_enabled), web_search=WebSearchConfig(enabled=False)),
            llm=EchoLLM(),
            embeddings=KeywordEmbeddings(),
        )
        self._store = store
        self._failures = failures
        self.attempts = 0

    @property
    def vector_store(self):
        self.attempts += 1
        if self.attempts <= self._failures:
            raise StoreUnavailableError("connection refused")
        return self._store


class TestRetrievalRecovery:
    def test_retrieval_recovers_when_store_comes_back(self):
        container = FlakyStoreContainer(InMemoryVectorStore())

        assert container.retrieval is None
        assert container.ingest_use_case is not None
        assert container.retrieval is not None

    def test_engine_is_kept_once_built(self):
        container = FlakyStoreContainer(InMemoryVectorStore(), failures=0)
        first = container.retrieval
        assert container.retrieval is first
        assert container.attempts == 1

    def test_chat_use_case_picks_up_recovered_retrieval(self):
        container = FlakyStoreContainer(InMemoryVectorStore())

        assert container.rag_chat_use_case.retrieval is None
        use_case = container.rag_chat_use_case
        assert use_case.retrieval is container.retrieval
        assert container.rag_chat_use_case is use_case

    def test_rag_disabled_never_opens_store(self):
        container = FlakyStoreContainer(InMemoryVectorStore(), failures=0, rag_enabled=False)
        assert container.retrieval is None
        assert container.attempts == 0

    def test_reset_drops_engine(self):
        container = FlakyStoreContainer(InMemoryVectorStore(), failures=0)
        first = container.retrieval
        container.reset()
        assert container.retrieval is not first


@pytest.mark.asyncio
async def test_retrieve_endpoint_recovers_after_store_outage(client):
    set_container(FlakyStoreContainer(InMemoryVectorStore()))

    first = await client.post("/v1/retrieve", json={"query": "alpha"})
    assert first.status_code == 503

    ingest = await client.post("/v1/documents", json={"source_id": "doc", "text": "alpha alpha"})
    assert ingest.status_code == 200

    second = await client.post("/v1/retrieve", json={"query": "alpha"})
    assert second.status_code == 200
    assert [r["source_id"] for r in second.json()["results"]] == ["doc"]
