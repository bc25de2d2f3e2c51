"""Web search API routes - raw multi-provider search."""

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from src.api.container import Container
from src.api.dependencies import container_dependency, limiter
from src.infrastructure.search.web_search import search_all

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["search"])


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)


class SearchResultModel(BaseModel):
    url: str
    site_name: str
    text_content: str


class SearchResponse(BaseModel):
    results: list[SearchResultModel]
    providers: list[str]
    # provider name -> error, for providers that failed
    failed: dict[str, str] = {}


@router.post("/search", response_model=SearchResponse)
@limiter.limit("30/minute")
async def web_search(
    request: Request,
    body: SearchRequest,
    container: Container = Depends(container_dependency),
) -> SearchResponse:
    """Search every configured provider; failing providers contribute nothing."""
    providers = container.search_providers
    outcome = await search_all(providers, body.query, container.search_backend)
    return SearchResponse(
        results=[
            SearchResultModel(url=r.url, site_name=r.site_name, text_content=r.text_content) for r in outcome.output.results
        ],
        providers=[p.name for p in providers],
        failed=outcome.failures,
    )
