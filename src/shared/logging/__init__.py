"""Structured logging setup with stdlib integration, plus startup config logging."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

from src.domain.ports.config import AppConfig


def setup_logging(
    level: str = "INFO",
    file_path: str = "",
    rotation_max_mb: int = 5,
    rotation_backups: int = 3,
) -> None:
    """Configure structlog integrated with standard library logging.

    Both structlog.get_logger() and logging.getLogger() outputs are formatted
    consistently. Level from config is applied to all loggers.

    If file_path is set, logs are also written to that file with rotation
    (when file exceeds rotation_max_mb, it is rotated; up to rotation_backups
    backup files are kept). Directory is created if missing.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    use_json = level.upper() != "DEBUG"

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    # Always log to stdout (terminal)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(log_level)
    root.addHandler(stream_handler)

    # Optionally log to file with rotation
    if file_path and file_path.strip():
        path = Path(file_path.strip()).resolve()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                path,
                maxBytes=rotation_max_mb * 1024 * 1024,
                backupCount=rotation_backups,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(log_level)
            root.addHandler(file_handler)
        except OSError as e:
            # Fallback: log to stderr that file logging failed, keep stdout only
            sys.stderr.write(f"Log file disabled: could not open {path}: {e}\n")


def log_server_config(config: AppConfig) -> None:
    """Log the effective startup configuration as server_config events (no secrets)."""
    log = structlog.get_logger("server_config")
    log.info(
        "server_config",
        socket_addr=f"{config.server.host}:{config.server.port}",
        llm_provider=config.llm.provider,
        chat_model=config.llm.chat_model,
        embedding_model=config.embeddings.model,
        prompt_template=config.llm.prompt_template,
    )
    rag = config.rag
    log.info(
        "server_config",
        rag_enabled=rag.enabled,
        rag_policy=rag.policy,
        rag_prompt=rag.rag_prompt,
        vector_store=rag.chromadb_host or rag.chromadb_path,
        collection_name=rag.collection_name,
        limit=rag.limit,
        score_threshold=rag.score_threshold,
        chunk_capacity=rag.chunk_capacity,
    )
    providers = [p for p in config.web_search.providers if p.enabled] if config.web_search.enabled else []
    for p in providers:
        log.info(
            "server_config",
            search_provider=p.name,
            kind=p.kind,
            endpoint=p.endpoint,
            max_results=p.max_results,
            timeout_ms=p.timeout_ms,
        )
    if not providers:
        log.info("server_config", search_provider=None)
