"""Document entities - chunks on the ingestion path, contexts on the query path."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DocumentChunk:
    """Token-bounded slice of a source document."""

    source_id: str
    sequence_index: int
    text: str
    token_count: int


@dataclass(frozen=True)
class EmbeddedChunk:
    """Chunk paired with its embedding vector, ready for upsert."""

    chunk: DocumentChunk
    vector: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class RetrievedContext:
    """Chunk text returned by a similarity query, with its score."""

    chunk_text: str
    score: float
    source_id: str = ""
    sequence_index: int | None = None
