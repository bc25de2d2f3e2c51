"""Config Port - interface for configuration access."""

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class LLMConfig(BaseModel):
    """Chat/embedding provider selection and chat model settings."""

    provider: str = "ollama"  # "ollama" | "lm_studio"
    chat_model: str = "llama3"
    # Prompt template of the chat model; decides whether a system message slot exists.
    prompt_template: str = "llama-3-chat"
    # Default token budget for completions. None = server/model default.
    max_tokens: int | None = None


class OllamaConfig(BaseModel):
    """Ollama connection configuration."""

    host: str = "http://localhost:11434"
    timeout: int = 120
    # Optional: context window. None = use model default.
    num_ctx: int | None = None


class OpenAICompatibleConfig(BaseModel):
    """LM Studio, vLLM, LocalAI, LlamaEdge - OpenAI-compatible API."""

    base_url: str = "http://localhost:1234/v1"
    api_key: str = ""
    timeout: int = 120


class EmbeddingsConfig(BaseModel):
    """Embeddings for RAG."""

    model: str = "nomic-embed-text"
    # Transport-level attempts on connection errors (1 = no retry).
    retry_attempts: int = Field(2, ge=1, le=10)


class RAGConfig(BaseModel):
    """Vector store (ChromaDB) and retrieval settings."""

    enabled: bool = True
    chromadb_path: str = "output/chromadb"
    # When set, connect to a Chroma server instead of the embedded store.
    chromadb_host: str | None = None
    chromadb_port: int = 8000
    collection_name: str = "default"
    limit: int = Field(5, ge=1)
    score_threshold: float = Field(0.4, ge=0.0, le=1.0)
    chunk_capacity: int = Field(100, ge=1)
    batch_size: int = Field(32, ge=1)
    policy: str = "system-message"  # "system-message" | "last-user-message"
    rag_prompt: str | None = None
    retrieval_timeout_s: float = Field(10.0, gt=0)
    request_timeout_s: float = Field(180.0, gt=0)


class SearchProviderSettings(BaseModel):
    """One external search backend as written in config."""

    name: str
    # Parser/query-shape key: local | searxng | brave | tavily | google | duckduckgo
    kind: str = "local"
    endpoint: str | None = None
    request_content_type: str | None = None
    response_content_type: str | None = None
    http_method: str | None = None
    max_results: int = Field(5, ge=1)
    timeout_ms: int = Field(1000, ge=1)
    extra_headers: dict[str, str] = {}
    api_key: str | None = None
    # Google Programmable Search Engine ID
    cx: str | None = None
    # Search engine forwarded to the local search server
    engine: str = "google"
    enabled: bool = True

    model_config = ConfigDict(extra="ignore")


class WebSearchConfig(BaseModel):
    """External web search providers, queried in parallel."""

    enabled: bool = True
    providers: list[SearchProviderSettings] = []


class SecurityConfig(BaseModel):
    """Security settings."""

    rate_limit_requests_per_minute: int = 100
    cors_origins: list[str] = ["http://localhost:5173"]


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


class AppConfig(BaseModel):
    """Full application configuration. Read-only after startup."""

    server: ServerConfig = ServerConfig()
    llm: LLMConfig = LLMConfig()
    ollama: OllamaConfig = OllamaConfig()
    openai_compatible: OpenAICompatibleConfig = OpenAICompatibleConfig()
    embeddings: EmbeddingsConfig = EmbeddingsConfig()
    rag: RAGConfig = RAGConfig()
    web_search: WebSearchConfig = WebSearchConfig()
    security: SecurityConfig = SecurityConfig()
    log_level: str = "INFO"
    # Log file: path relative to cwd or absolute. Empty = only stdout. Rotation when file exceeds max_mb.
    log_file: str = ""
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3

    model_config = ConfigDict(frozen=True)


class ConfigPort(Protocol):
    """Interface for configuration providers."""

    def get_config(self) -> AppConfig:
        """Get the full application configuration."""
        ...
