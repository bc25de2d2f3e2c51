"""Application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api import __version__
from src.api.container import get_container
from src.api.dependencies import limiter
from src.api.routes.chat import router as chat_router
from src.api.routes.info import router as info_router
from src.api.routes.rag import router as rag_router
from src.api.routes.search import router as search_router
from src.infrastructure.services.http_pool import HTTPPool
from src.shared.logging import log_server_config, setup_logging

log = structlog.get_logger()


def _apply_logging_config(container):
    """Apply logging from container config (stdout + optional file)."""
    c = container.config
    setup_logging(
        level=c.log_level,
        file_path=c.log_file or "",
        rotation_max_mb=c.log_rotation_max_mb,
        rotation_backups=c.log_rotation_backups,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: setup logging, log the effective config, fail fast on bad config."""
    container = get_container()
    _apply_logging_config(container)
    log.info("startup_begin", llm_provider=container.config.llm.provider)
    container.validate()
    log_server_config(container.config)
    log.info("startup_complete", version=__version__)
    yield
    # Shutdown: close shared resources
    log.info("shutdown_begin")
    await HTTPPool.reset()
    if hasattr(container.llm, "close"):
        try:
            await container.llm.close()
        except Exception:  # noqa: BLE001
            log.debug("llm_close_error", exc_info=True)
    log.info("shutdown_complete")


# Create app
app = FastAPI(
    title="RAG Search API",
    version=__version__,
    description="Chat completions augmented with vector-store retrieval and web search",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
container = get_container()
app.add_middleware(
    CORSMiddleware,
    allow_origins=container.config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(chat_router)
app.include_router(info_router)
app.include_router(rag_router)
app.include_router(search_router)


@app.get("/health")
@limiter.limit("100/minute")
async def health(request: Request) -> dict:
    """Health check with LLM availability."""
    container = get_container()
    llm_available = await container.llm.is_available()
    return {
        "status": "ok",
        "service": "rag-search-api",
        "llm_provider": container.config.llm.provider,
        "llm_available": llm_available,
    }
