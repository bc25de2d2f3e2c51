"""Tests for EmbeddingIndexer."""

import pytest

from src.domain.entities.documents import DocumentChunk
from src.domain.errors import IndexingError, ModelError, StoreError, StoreUnavailableError
from src.infrastructure.rag.indexer import EmbeddingIndexer, chunk_point_id
from tests.fakes import InMemoryVectorStore, KeywordEmbeddings


def _chunks(*texts, source_id="doc"):
    return [DocumentChunk(source_id=source_id, sequence_index=i, text=t, token_count=len(t.split())) for i, t in enumerate(texts)]


class FlakyEmbeddings(KeywordEmbeddings):
    """Batch calls fail; single calls fail only for texts containing 'bad'."""

    async def embed_batch(self, texts):
        raise ModelError("batch rejected")

    async def embed(self, text):
        if "bad" in text:
            raise ModelError("cannot embed")
        return await super().embed(text)


class RejectingStore(InMemoryVectorStore):
    def __init__(self, error):
        super().__init__()
        self.error = error

    async def upsert(self, point_id, vector, document, metadata):
        if "reject" in document:
            raise self.error
        await super().upsert(point_id, vector, document, metadata)


class TestEmbeddingIndexer:
    @pytest.mark.asyncio
    async def test_indexes_every_chunk_with_metadata(self):
        store = InMemoryVectorStore()
        indexed = await EmbeddingIndexer(KeywordEmbeddings(), store, batch_size=2).index(_chunks("alpha", "beta", "gamma"))

        assert indexed == 3
        vector, document, metadata = store.points[chunk_point_id(_chunks("alpha")[0])]
        assert document == "alpha"
        assert metadata == {"source_id": "doc", "sequence_index": 0, "token_count": 1}

    @pytest.mark.asyncio
    async def test_reindexing_replaces_points(self):
        store = InMemoryVectorStore()
        indexer = EmbeddingIndexer(KeywordEmbeddings(), store)
        await indexer.index(_chunks("alpha", "beta"))
        await indexer.index(_chunks("alpha", "beta"))
        assert await store.count() == 2

    @pytest.mark.asyncio
    async def test_bad_chunk_is_skipped(self):
        store = InMemoryVectorStore()
        indexed = await EmbeddingIndexer(FlakyEmbeddings(), store).index(_chunks("alpha", "bad chunk", "gamma"))
        assert indexed == 2
        assert sorted(doc for _, doc, _ in store.points.values()) == ["alpha", "gamma"]

    @pytest.mark.asyncio
    async def test_rejected_upsert_is_skipped(self):
        store = RejectingStore(StoreError("payload too large"))
        indexed = await EmbeddingIndexer(KeywordEmbeddings(), store).index(_chunks("alpha", "reject me"))
        assert indexed == 1

    @pytest.mark.asyncio
    async def test_unreachable_store_fails_run(self):
        store = RejectingStore(StoreUnavailableError("connection refused"))
        with pytest.raises(IndexingError):
            await EmbeddingIndexer(KeywordEmbeddings(), store).index(_chunks("alpha", "reject me"))

    @pytest.mark.asyncio
    async def test_no_chunks(self):
        assert await EmbeddingIndexer(KeywordEmbeddings(), InMemoryVectorStore()).index([]) == 0


def test_point_id_is_stable_and_source_scoped():
    a = chunk_point_id(DocumentChunk("doc", 0, "x", 1))
    assert a == chunk_point_id(DocumentChunk("doc", 0, "changed text", 1))
    assert a != chunk_point_id(DocumentChunk("other", 0, "x", 1))
    assert len(a) == 16
