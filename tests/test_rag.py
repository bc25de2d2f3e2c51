"""Document ingestion and retrieval API tests."""

import pytest

from src.api.container import Container, set_container
from src.domain.errors import StoreUnavailableError
from src.domain.ports.config import AppConfig, RAGConfig, WebSearchConfig
from tests.fakes import EchoLLM, InMemoryVectorStore, KeywordEmbeddings


class TestDocuments:
    @pytest.mark.asyncio
    async def test_ingest_and_count(self, client):
        text = " ".join(["alpha"] * 150)
        resp = await client.post("/v1/documents", json={"source_id": "doc", "text": text, "chunk_capacity": 100})

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "source_id": "doc", "chunks_created": 2, "chunks_indexed": 2}

        resp = await client.get("/v1/documents/count")
        assert resp.json() == {"count": 2}

    @pytest.mark.asyncio
    async def test_invalid_capacity_rejected(self, client):
        resp = await client.post("/v1/documents", json={"source_id": "doc", "text": "x", "chunk_capacity": 0})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_unreachable_store_is_503(self, client):
        class DownStore(InMemoryVectorStore):
            async def delete_source(self, source_id):
                raise StoreUnavailableError("refused")

        set_container(
            Container(
                AppConfig(web_search=WebSearchConfig(enabled=False)),
                llm=EchoLLM(),
                embeddings=KeywordEmbeddings(),
                vector_store=DownStore(),
            )
        )
        resp = await client.post("/v1/documents", json={"source_id": "doc", "text": "alpha"})
        assert resp.status_code == 503


class TestRetrieve:
    @pytest.mark.asyncio
    async def test_retrieve_ranks_matching_chunk(self, client):
        await client.post("/v1/documents", json={"source_id": "a", "text": "alpha alpha alpha"})
        await client.post("/v1/documents", json={"source_id": "b", "text": "gamma gamma gamma"})

        resp = await client.post("/v1/retrieve", json={"query": "gamma"})

        assert resp.status_code == 200
        results = resp.json()["results"]
        assert [r["source_id"] for r in results] == ["b"]
        assert results[0]["sequence_index"] == 0
        assert results[0]["score"] > 0.3

    @pytest.mark.asyncio
    async def test_threshold_override(self, client):
        await client.post("/v1/documents", json={"source_id": "a", "text": "alpha alpha alpha"})
        resp = await client.post("/v1/retrieve", json={"query": "gamma", "score_threshold": 0.0})
        assert len(resp.json()["results"]) == 1

    @pytest.mark.asyncio
    async def test_rag_disabled_is_503(self, client):
        set_container(
            Container(
                AppConfig(rag=RAGConfig(enabled=False), web_search=WebSearchConfig(enabled=False)),
                llm=EchoLLM(),
                embeddings=KeywordEmbeddings(),
                vector_store=InMemoryVectorStore(),
            )
        )
        resp = await client.post("/v1/retrieve", json={"query": "alpha"})
        assert resp.status_code == 503

    @pytest.mark.asyncio
    async def test_embedding_failure_is_502(self, client, embeddings):
        embeddings.fail = True
        resp = await client.post("/v1/retrieve", json={"query": "alpha"})
        assert resp.status_code == 502
