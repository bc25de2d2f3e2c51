"""Ollama adapter - implements LLMPort via the ollama client."""

import logging

import httpx
from ollama import AsyncClient, ResponseError

from src.domain.errors import ModelError
from src.domain.ports.config import OllamaConfig
from src.domain.ports.llm import Conversation

logger = logging.getLogger(__name__)

# Connect timeout: fail fast when the host is down
DEFAULT_CONNECT_TIMEOUT = 5.0


class OllamaAdapter:
    """Ollama implementation of LLMPort."""

    def __init__(self, config: OllamaConfig, model: str) -> None:
        self._config = config
        self._model = model
        read_timeout = float(config.timeout) if config.timeout else 120.0
        timeout = httpx.Timeout(
            connect=DEFAULT_CONNECT_TIMEOUT,
            read=read_timeout,
            write=read_timeout,
            pool=30.0,
        )
        self._client = AsyncClient(host=config.host, timeout=timeout)

    def _options(self, token_budget: int | None) -> dict:
        opts: dict = {}
        if self._config.num_ctx is not None:
            opts["num_ctx"] = self._config.num_ctx
        if token_budget is not None:
            opts["num_predict"] = token_budget
        return opts

    async def complete(self, conversation: Conversation, token_budget: int | None = None) -> str:
        """Single non-streaming completion. Raises ModelError."""
        try:
            response = await self._client.chat(
                model=self._model,
                messages=[{"role": m.role, "content": m.content} for m in conversation],
                options=self._options(token_budget),
            )
        except ResponseError as e:
            logger.error("Ollama chat error %s: %s", e.status_code, e.error)
            raise ModelError(f"completion failed: {e.error}") from e
        except (httpx.HTTPError, ConnectionError) as e:
            logger.error("Ollama chat unreachable: %s", e)
            raise ModelError(f"completion failed: {e}") from e
        return response.message.content if response.message and response.message.content else ""

    async def is_available(self) -> bool:
        """Check if Ollama server is available."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._config.host.rstrip('/')}/api/tags")
                return resp.status_code == 200
        except (httpx.HTTPError, OSError) as e:
            logger.debug("Ollama availability check failed: %s", e)
            return False
