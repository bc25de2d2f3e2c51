"""TOML configuration loader with env overrides."""

import logging
import os
import tomllib
from pathlib import Path

from pydantic import ValidationError

from src.domain.errors import ConfigError
from src.domain.ports.config import (
    AppConfig,
    EmbeddingsConfig,
    LLMConfig,
    OllamaConfig,
    OpenAICompatibleConfig,
    RAGConfig,
    SearchProviderSettings,
    SecurityConfig,
    ServerConfig,
    WebSearchConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"

_TRUE = {"1", "true", "yes", "on"}


def _load_toml(path: Path) -> dict:
    """Load TOML file."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def _merge(base: dict, override: dict) -> dict:
    """Shallow per-section merge (sections are dicts, lists are replaced)."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _set_int(config: dict, section: str, key: str, env: str) -> None:
    if (raw := os.getenv(env)) is None:
        return
    try:
        config.setdefault(section, {})[key] = int(raw)
    except ValueError:
        logger.warning("Invalid %s env value: %r, ignoring", env, raw)


def _set_float(config: dict, section: str, key: str, env: str) -> None:
    if (raw := os.getenv(env)) is None:
        return
    try:
        config.setdefault(section, {})[key] = float(raw)
    except ValueError:
        logger.warning("Invalid %s env value: %r, ignoring", env, raw)


def _apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides."""
    if provider := os.getenv("LLM_PROVIDER"):
        config.setdefault("llm", {})["provider"] = provider
    if model := os.getenv("CHAT_MODEL"):
        config.setdefault("llm", {})["chat_model"] = model
    if template := os.getenv("PROMPT_TEMPLATE"):
        config.setdefault("llm", {})["prompt_template"] = template
    if host := os.getenv("OLLAMA_HOST"):
        config.setdefault("ollama", {})["host"] = host
    if base_url := os.getenv("OPENAI_BASE_URL"):
        config.setdefault("openai_compatible", {})["base_url"] = base_url
    _set_int(config, "server", "port", "PORT")
    if level := os.getenv("LOG_LEVEL"):
        config.setdefault("logging", {})["level"] = level.upper()
    if path := os.getenv("LOG_FILE"):
        config.setdefault("logging", {})["file"] = path.strip()
    if origins := os.getenv("CORS_ORIGINS"):
        config.setdefault("security", {})["cors_origins"] = [o.strip() for o in origins.split(",")]
    if model := os.getenv("EMBEDDINGS_MODEL"):
        config.setdefault("embeddings", {})["model"] = model
    if (enabled := os.getenv("ENABLE_RAG")) is not None:
        config.setdefault("rag", {})["enabled"] = enabled.strip().lower() in _TRUE
    if policy := os.getenv("RAG_POLICY"):
        config.setdefault("rag", {})["policy"] = policy
    if prompt := os.getenv("RAG_PROMPT"):
        config.setdefault("rag", {})["rag_prompt"] = prompt
    if path := os.getenv("CHROMADB_PATH"):
        config.setdefault("rag", {})["chromadb_path"] = path.strip()
    if host := os.getenv("CHROMADB_HOST"):
        config.setdefault("rag", {})["chromadb_host"] = host.strip() or None
    if collection := os.getenv("RAG_COLLECTION"):
        config.setdefault("rag", {})["collection_name"] = collection.strip()
    _set_int(config, "rag", "limit", "RAG_LIMIT")
    _set_float(config, "rag", "score_threshold", "RAG_SCORE_THRESHOLD")
    _set_int(config, "rag", "chunk_capacity", "CHUNK_CAPACITY")
    if url := os.getenv("SEARCH_SERVER_URL"):
        # Points every "local" provider at the given search server
        for provider in config.setdefault("web_search", {}).get("providers", []):
            if provider.get("kind", "local") == "local":
                provider["endpoint"] = url.strip()
    return config


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Load configuration from TOML files with env overrides.

    Loads default.toml, then development.toml if exists.

    Raises:
        ConfigError: If a file or section is malformed

    """
    if config_dir is None:
        config_dir = DEFAULT_CONFIG_DIR

    config: dict = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = _load_toml(default_path)

    dev_path = config_dir / "development.toml"
    if dev_path.exists():
        config = _merge(config, _load_toml(dev_path))

    config = _apply_env_overrides(config)

    logging_raw = config.get("logging") or {}
    web_raw = config.get("web_search") or {}
    try:
        providers = [SearchProviderSettings(**p) for p in web_raw.get("providers", [])]
        web_search = WebSearchConfig(enabled=web_raw.get("enabled", True), providers=providers)
        return AppConfig(
            server=ServerConfig(**(config.get("server") or {})),
            llm=LLMConfig(**(config.get("llm") or {})),
            ollama=OllamaConfig(**(config.get("ollama") or {})),
            openai_compatible=OpenAICompatibleConfig(**(config.get("openai_compatible") or {})),
            embeddings=EmbeddingsConfig(**(config.get("embeddings") or {})),
            rag=RAGConfig(**(config.get("rag") or {})),
            web_search=web_search,
            security=SecurityConfig(**(config.get("security") or {})),
            log_level=logging_raw.get("level", "INFO"),
            log_file=(logging_raw.get("file") or "").strip(),
            log_rotation_max_mb=int(logging_raw.get("log_rotation_max_mb", 5)),
            log_rotation_backups=int(logging_raw.get("log_rotation_backups", 3)),
        )
    except (ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
