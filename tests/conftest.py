"""Pytest configuration and shared fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.container import Container, reset_container, set_container
from src.api.dependencies import limiter
from src.domain.ports.config import AppConfig, RAGConfig, WebSearchConfig
from tests.fakes import EchoLLM, InMemoryVectorStore, KeywordEmbeddings


@pytest.fixture
def embeddings():
    return KeywordEmbeddings()


@pytest.fixture
def vector_store():
    return InMemoryVectorStore()


@pytest.fixture
def llm():
    return EchoLLM(reply="Here is the answer.")


@pytest.fixture
def app_config():
    """Config without web search; RAG against the fake store."""
    return AppConfig(
        rag=RAGConfig(policy="last-user-message", score_threshold=0.3, chunk_capacity=100),
        web_search=WebSearchConfig(enabled=False),
    )


@pytest.fixture
def container(app_config, llm, embeddings, vector_store):
    c = Container(app_config, llm=llm, embeddings=embeddings, vector_store=vector_store)
    set_container(c)
    limiter.reset()
    yield c
    reset_container()


@pytest.fixture
async def client(container):
    """HTTP client against the app wired to the fakes."""
    from src.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
