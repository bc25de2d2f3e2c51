"""Vector Store Port - upsert chunks, query nearest neighbours."""

from typing import Protocol


class VectorStorePort(Protocol):
    """Interface for vector stores (ChromaDB, etc.).

    Raise StoreUnavailableError when the store cannot be reached at all,
    StoreError for any other failed operation.
    """

    async def upsert(
        self,
        point_id: str,
        vector: list[float],
        document: str,
        metadata: dict,
    ) -> None:
        """Insert or replace one point."""
        ...

    async def query(self, vector: list[float], limit: int) -> list[tuple[dict, float]]:
        """Return up to `limit` (payload, similarity score) pairs, best first.

        Payload holds "document" plus the metadata stored with the point.
        """
        ...

    async def count(self) -> int:
        """Number of stored points."""
        ...
