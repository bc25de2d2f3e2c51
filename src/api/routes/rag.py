"""RAG API routes - ingest documents and query the vector store."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from src.api.dependencies import get_ingest_use_case, get_retrieval_engine, limiter
from src.application.ingest.use_case import IngestUseCase
from src.domain.errors import IndexingError, ModelError, StoreError
from src.infrastructure.rag.retrieval import RetrievalEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["rag"])


class IngestRequest(BaseModel):
    """Document to chunk and index."""

    source_id: str = Field(..., min_length=1, max_length=1024)
    text: str = Field(..., max_length=5_000_000)
    chunk_capacity: int | None = Field(None, ge=1, le=100_000)


class IngestResponse(BaseModel):
    status: str = "ok"
    source_id: str
    chunks_created: int
    chunks_indexed: int


class RetrieveRequest(BaseModel):
    """Request for similarity retrieval."""

    query: str = Field(..., min_length=1, max_length=8000)
    limit: int | None = Field(None, ge=1, le=100)
    score_threshold: float | None = Field(None, ge=0.0, le=1.0)


class ChunkResult(BaseModel):
    text: str
    score: float
    source_id: str
    sequence_index: int | None = None


class RetrieveResponse(BaseModel):
    results: list[ChunkResult]


@router.post("/documents", response_model=IngestResponse)
@limiter.limit("30/minute")
async def ingest_document(
    request: Request,
    body: IngestRequest,
    use_case: IngestUseCase = Depends(get_ingest_use_case),
) -> IngestResponse:
    """Chunk a document and upsert its embeddings into the vector store."""
    try:
        result = await use_case.ingest(body.source_id, body.text, body.chunk_capacity)
    except IndexingError as e:
        logger.error("Ingestion failed for source=%s: %s", body.source_id, e)
        raise HTTPException(status_code=503, detail=str(e))

    return IngestResponse(
        source_id=result.source_id,
        chunks_created=len(result.chunks),
        chunks_indexed=result.indexed,
    )


@router.post("/retrieve", response_model=RetrieveResponse)
@limiter.limit("60/minute")
async def retrieve(
    request: Request,
    body: RetrieveRequest,
    engine: RetrievalEngine = Depends(get_retrieval_engine),
) -> RetrieveResponse:
    """Nearest chunks for a query that clear the score threshold."""
    try:
        contexts = await engine.retrieve(body.query, body.limit, body.score_threshold)
    except ModelError as e:
        raise HTTPException(status_code=502, detail=f"Embedding model error: {e}")
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Vector store error: {e}")

    return RetrieveResponse(
        results=[
            ChunkResult(text=c.chunk_text, score=c.score, source_id=c.source_id, sequence_index=c.sequence_index)
            for c in contexts
        ]
    )


@router.get("/documents/count")
@limiter.limit("60/minute")
async def document_count(
    request: Request,
    use_case: IngestUseCase = Depends(get_ingest_use_case),
) -> dict:
    """Number of chunks stored in the configured collection."""
    try:
        count = await use_case.count()
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Vector store error: {e}")
    return {"count": count}
