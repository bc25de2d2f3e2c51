"""FastAPI dependencies - resolved from the DI container."""

from fastapi import HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.api.container import Container, get_container
from src.application.ingest.use_case import IngestUseCase
from src.application.rag_chat.use_case import RagChatUseCase
from src.domain.errors import StoreError
from src.infrastructure.rag.retrieval import RetrievalEngine

limiter = Limiter(key_func=get_remote_address)


def container_dependency() -> Container:
    return get_container()


def get_rag_chat_use_case() -> RagChatUseCase:
    return get_container().rag_chat_use_case


def get_ingest_use_case() -> IngestUseCase:
    """Ingestion needs the vector store; 503 when it cannot be opened."""
    try:
        return get_container().ingest_use_case
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Vector store unavailable: {e}") from e


def get_retrieval_engine() -> RetrievalEngine:
    retrieval = get_container().retrieval
    if retrieval is None:
        raise HTTPException(status_code=503, detail="RAG retrieval is disabled or the vector store is unavailable")
    return retrieval
