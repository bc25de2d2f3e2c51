"""Retrieval engine - similarity search over indexed chunks."""

import logging

from src.domain.entities.documents import RetrievedContext
from src.domain.errors import ModelError
from src.domain.ports.embeddings import EmbeddingsPort
from src.domain.ports.vector_store import VectorStorePort

logger = logging.getLogger(__name__)


class RetrievalEngine:
    """Embeds a query and returns the nearest chunks that clear the score threshold."""

    def __init__(
        self,
        embeddings: EmbeddingsPort,
        vector_store: VectorStorePort,
        limit: int = 5,
        score_threshold: float = 0.4,
    ) -> None:
        self._embeddings = embeddings
        self._store = vector_store
        self._limit = limit
        self._score_threshold = score_threshold

    async def retrieve(
        self,
        query_text: str,
        limit: int | None = None,
        score_threshold: float | None = None,
    ) -> list[RetrievedContext]:
        """Return up to `limit` contexts with score >= score_threshold, best first.

        An empty list means "no relevant context" and is not an error.

        Raises:
            ModelError: If the query cannot be embedded
            StoreError: If the vector store query fails

        """
        limit = self._limit if limit is None else limit
        threshold = self._score_threshold if score_threshold is None else score_threshold
        if not query_text.strip() or limit < 1:
            return []

        vector = await self._embeddings.embed(query_text.strip())
        if not vector:
            raise ModelError("Empty query embedding returned")

        hits = await self._store.query(vector, limit)

        contexts = []
        for payload, score in hits[:limit]:
            if score < threshold:
                continue
            text = payload.get("document") or ""
            if not text:
                continue
            contexts.append(
                RetrievedContext(
                    chunk_text=text,
                    score=float(score),
                    source_id=str(payload.get("source_id", "")),
                    sequence_index=payload.get("sequence_index"),
                )
            )

        # Stable: ties keep the store's native order
        contexts.sort(key=lambda c: c.score, reverse=True)
        logger.debug(
            "Retrieved %d/%d contexts (limit=%d, threshold=%.2f)", len(contexts), len(hits), limit, threshold
        )
        return contexts
