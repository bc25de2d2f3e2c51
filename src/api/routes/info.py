"""Server info route."""

from fastapi import APIRouter, Depends, Request

from src.api import __version__
from src.api.container import Container
from src.api.dependencies import container_dependency, limiter

router = APIRouter(prefix="/v1", tags=["info"])


@router.get("/info")
@limiter.limit("60/minute")
async def server_info(
    request: Request,
    container: Container = Depends(container_dependency),
) -> dict:
    """Version, RAG settings and search providers in effect."""
    c = container.config
    merger = container.merger
    return {
        "version": __version__,
        "port": str(c.server.port),
        "chat_model": c.llm.chat_model,
        "embedding_model": c.embeddings.model,
        "prompt_template": container.chat_template.value,
        "rag_config": {
            "enabled": c.rag.enabled,
            "policy": merger.effective_policy.value,
            "configured_policy": merger.configured_policy.value,
            "collection_name": c.rag.collection_name,
            "limit": c.rag.limit,
            "score_threshold": c.rag.score_threshold,
            "chunk_capacity": c.rag.chunk_capacity,
        },
        "search_providers": [
            {"name": p.name, "endpoint": p.endpoint, "max_results": p.max_results, "timeout_ms": p.timeout_ms}
            for p in container.search_providers
        ],
    }
