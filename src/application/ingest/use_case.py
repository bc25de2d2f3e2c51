"""Ingestion use case - chunk a document and index it."""

import logging
from dataclasses import dataclass

from src.domain.entities.documents import DocumentChunk
from src.domain.errors import IndexingError, StoreError, StoreUnavailableError
from src.infrastructure.rag.chunker import DocumentChunker
from src.infrastructure.rag.indexer import EmbeddingIndexer

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    source_id: str
    chunks: list[DocumentChunk]
    indexed: int


class IngestUseCase:
    """Chunks a source and indexes it; returns once the chunks are retrievable."""

    def __init__(
        self,
        chunker: DocumentChunker,
        indexer: EmbeddingIndexer,
        chunk_capacity: int = 100,
        vector_store=None,
    ) -> None:
        """vector_store: when it supports delete_source, old chunks of a source are dropped first."""
        self._chunker = chunker
        self._indexer = indexer
        self._chunk_capacity = chunk_capacity
        self._store = vector_store

    async def ingest(self, source_id: str, text: str, chunk_capacity: int | None = None) -> IngestResult:
        """Chunk and index one source.

        Raises:
            IndexingError: If the vector store is unreachable
            ValueError: If chunk_capacity < 1

        """
        capacity = self._chunk_capacity if chunk_capacity is None else chunk_capacity
        chunks = self._chunker.chunk(text, capacity, source_id=source_id)
        if not chunks:
            logger.info("Nothing to ingest for source=%s (empty text)", source_id)
            return IngestResult(source_id=source_id, chunks=[], indexed=0)

        await self._drop_previous(source_id)
        indexed = await self._indexer.index(chunks)
        logger.info("Ingested source=%s: chunks=%d, indexed=%d", source_id, len(chunks), indexed)
        return IngestResult(source_id=source_id, chunks=chunks, indexed=indexed)

    async def _drop_previous(self, source_id: str) -> None:
        delete_source = getattr(self._store, "delete_source", None)
        if delete_source is None:
            return
        try:
            await delete_source(source_id)
        except StoreUnavailableError as e:
            raise IndexingError(f"vector store unreachable: {e}") from e
        except StoreError as e:
            logger.warning("Could not drop previous chunks of %s: %s", source_id, e)

    async def count(self) -> int:
        """Number of indexed chunks, 0 without a store."""
        if self._store is None:
            return 0
        return await self._store.count()
