"""ChromaDB vector store - implements VectorStorePort.

Uses the embedded PersistentClient by default, or a Chroma server when a host
is configured. The client is synchronous, so calls run in a worker thread.
"""

import asyncio
import logging
from pathlib import Path

import chromadb
import httpx
from chromadb.config import Settings
from chromadb.errors import ChromaError

from src.domain.errors import StoreError, StoreUnavailableError
from src.domain.ports.config import RAGConfig

logger = logging.getLogger(__name__)

# Cosine distance -> similarity
_SPACE = "cosine"

_UNREACHABLE = (ConnectionError, OSError, httpx.TransportError)
_FAILED = (ChromaError, ValueError, RuntimeError, KeyError, TypeError)


class ChromaDBVectorStore:
    """ChromaDB implementation of VectorStorePort."""

    def __init__(self, config: RAGConfig, client: "chromadb.ClientAPI | None" = None) -> None:
        """Connect to Chroma (or use the given client) and open the collection.

        Raises:
            StoreUnavailableError: If the Chroma server cannot be reached

        """
        self._config = config
        settings = Settings(anonymized_telemetry=False)
        try:
            if client is not None:
                self._client = client
            elif config.chromadb_host:
                self._client = chromadb.HttpClient(
                    host=config.chromadb_host,
                    port=config.chromadb_port,
                    settings=settings,
                )
            else:
                chromadb_path = Path(config.chromadb_path).resolve()
                chromadb_path.mkdir(parents=True, exist_ok=True)
                self._client = chromadb.PersistentClient(path=str(chromadb_path), settings=settings)
            self._collection = self._client.get_or_create_collection(
                name=config.collection_name,
                metadata={"hnsw:space": _SPACE},
            )
        except _UNREACHABLE as e:
            raise StoreUnavailableError(f"Chroma not reachable: {e}") from e
        except _FAILED as e:
            raise StoreError(f"Failed to open collection {config.collection_name!r}: {e}") from e

    @property
    def collection_name(self) -> str:
        return self._config.collection_name

    async def _call(self, op: str, fn, *args, **kwargs):
        """Run a blocking Chroma call off the event loop, translating errors."""
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except _UNREACHABLE as e:
            logger.error("ChromaDB %s: store unreachable: %s", op, e)
            raise StoreUnavailableError(f"{op}: {e}") from e
        except _FAILED as e:
            logger.error("ChromaDB %s failed: %s", op, e)
            raise StoreError(f"{op}: {e}") from e

    async def upsert(self, point_id: str, vector: list[float], document: str, metadata: dict) -> None:
        await self._call(
            "upsert",
            self._collection.upsert,
            ids=[point_id],
            embeddings=[vector],
            documents=[document],
            metadatas=[metadata],
        )

    async def query(self, vector: list[float], limit: int) -> list[tuple[dict, float]]:
        """Nearest neighbours as (payload, cosine similarity), best first."""
        count = await self.count()
        if count == 0 or limit < 1:
            return []

        result = await self._call(
            "query",
            self._collection.query,
            query_embeddings=[vector],
            n_results=min(limit, count),
            include=["documents", "metadatas", "distances"],
        )

        documents = (result.get("documents") or [[]])[0] or []
        metadatas = (result.get("metadatas") or [[]])[0] or []
        distances = (result.get("distances") or [[]])[0] or []

        hits: list[tuple[dict, float]] = []
        for i, doc in enumerate(documents):
            meta = (metadatas[i] if i < len(metadatas) else None) or {}
            dist = distances[i] if i < len(distances) else None
            score = 1.0 - dist if dist is not None else 0.0
            hits.append(({**meta, "document": doc or ""}, max(-1.0, min(1.0, score))))
        return hits

    async def count(self) -> int:
        return await self._call("count", self._collection.count)

    async def delete_source(self, source_id: str) -> None:
        """Remove every chunk of one source."""
        await self._call("delete", self._collection.delete, where={"source_id": {"$eq": source_id}})

