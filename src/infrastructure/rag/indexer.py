"""Embedding indexer - embeds chunks and upserts them into the vector store.

Tolerates partial failure: a chunk whose embedding or upsert fails is logged
and skipped. Only an unreachable vector store fails the whole run.
"""

import hashlib
import logging
from collections.abc import Sequence

from src.domain.entities.documents import DocumentChunk, EmbeddedChunk
from src.domain.errors import IndexingError, ModelError, StoreError, StoreUnavailableError
from src.domain.ports.embeddings import EmbeddingsPort
from src.domain.ports.vector_store import VectorStorePort

logger = logging.getLogger(__name__)


def chunk_point_id(chunk: DocumentChunk) -> str:
    """Stable point ID: re-ingesting a source replaces its chunks."""
    return hashlib.sha256(f"{chunk.source_id}:{chunk.sequence_index}".encode()).hexdigest()[:16]


class EmbeddingIndexer:
    """Populates the vector store from document chunks."""

    def __init__(
        self,
        embeddings: EmbeddingsPort,
        vector_store: VectorStorePort,
        batch_size: int = 32,
    ) -> None:
        self._embeddings = embeddings
        self._store = vector_store
        self._batch_size = max(1, batch_size)

    async def index(self, chunks: Sequence[DocumentChunk]) -> int:
        """Embed and upsert every chunk. Returns the number indexed.

        Raises:
            IndexingError: If the vector store is unreachable

        """
        if not chunks:
            return 0

        indexed = 0
        total_batches = (len(chunks) + self._batch_size - 1) // self._batch_size
        for batch_num, i in enumerate(range(0, len(chunks), self._batch_size), 1):
            batch = list(chunks[i : i + self._batch_size])
            embedded = await self._embed(batch, batch_num)
            for item in embedded:
                if await self._upsert(item):
                    indexed += 1
            if total_batches > 5 and batch_num % max(1, total_batches // 10) == 0:
                logger.info("Indexing progress: %d%% (%d/%d)", round(batch_num / total_batches * 100), batch_num, total_batches)

        skipped = len(chunks) - indexed
        if skipped:
            logger.warning("Indexed %d of %d chunks (%d skipped)", indexed, len(chunks), skipped)
        else:
            logger.info("Indexed %d chunks", indexed)
        return indexed

    async def _embed(self, batch: list[DocumentChunk], batch_num: int) -> list[EmbeddedChunk]:
        """Embed a batch; on batch failure retry chunk by chunk to isolate bad ones."""
        try:
            vectors = await self._embeddings.embed_batch([c.text for c in batch])
        except ModelError as e:
            logger.warning("Batch %d embedding failed, falling back to per-chunk: %s", batch_num, e)
            vectors = [await self._embed_one(c) for c in batch]

        if len(vectors) != len(batch):
            logger.warning(
                "Batch %d: embedding count mismatch (got %d, expected %d)", batch_num, len(vectors), len(batch)
            )
            vectors = (list(vectors) + [[]] * len(batch))[: len(batch)]

        embedded = []
        for chunk, vector in zip(batch, vectors):
            if not vector:
                logger.warning(
                    "Skipping chunk %s#%d: empty embedding", chunk.source_id, chunk.sequence_index
                )
                continue
            embedded.append(EmbeddedChunk(chunk=chunk, vector=vector))
        return embedded

    async def _embed_one(self, chunk: DocumentChunk) -> list[float]:
        try:
            return await self._embeddings.embed(chunk.text)
        except ModelError as e:
            logger.warning("Embedding failed for chunk %s#%d: %s", chunk.source_id, chunk.sequence_index, e)
            return []

    async def _upsert(self, item: EmbeddedChunk) -> bool:
        chunk = item.chunk
        try:
            await self._store.upsert(
                point_id=chunk_point_id(chunk),
                vector=item.vector,
                document=chunk.text,
                metadata={
                    "source_id": chunk.source_id,
                    "sequence_index": chunk.sequence_index,
                    "token_count": chunk.token_count,
                },
            )
        except StoreUnavailableError as e:
            logger.error("Vector store unreachable while indexing: %s", e)
            raise IndexingError(f"vector store unreachable: {e}") from e
        except StoreError as e:
            logger.warning("Upsert failed for chunk %s#%d: %s", chunk.source_id, chunk.sequence_index, e)
            return False
        return True
