"""OpenAI-compatible adapter - LM Studio, vLLM, LocalAI, LlamaEdge."""

import logging

import httpx

from src.domain.errors import ModelError
from src.domain.ports.config import OpenAICompatibleConfig
from src.domain.ports.llm import Conversation

logger = logging.getLogger(__name__)


class OpenAICompatibleAdapter:
    """Implements LLMPort via POST {base_url}/chat/completions."""

    def __init__(self, config: OpenAICompatibleConfig, model: str) -> None:
        self._config = config
        self._model = model
        self._base_url = config.base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json"}
        if config.api_key:
            self._headers["Authorization"] = f"Bearer {config.api_key}"
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                headers=self._headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client (call during app shutdown)."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _chat_body(self, conversation: Conversation, token_budget: int | None) -> dict:
        body: dict = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in conversation],
            "stream": False,
        }
        if token_budget is not None:
            body["max_tokens"] = token_budget
        return body

    async def complete(self, conversation: Conversation, token_budget: int | None = None) -> str:
        """Single non-streaming completion. Raises ModelError."""
        body = self._chat_body(conversation, token_budget)
        try:
            resp = await self._get_client().post(f"{self._base_url}/chat/completions", json=body)
        except httpx.HTTPError as e:
            logger.error("LLM API unreachable: %s", e)
            raise ModelError(f"completion failed: {e}") from e

        if resp.status_code >= 400:
            logger.error("LLM API error %s: %s", resp.status_code, resp.text[:500])
            raise ModelError(f"completion failed with HTTP {resp.status_code}")

        try:
            data = resp.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Malformed completion response: %s", resp.text[:200])
            raise ModelError("malformed completion response") from e

    async def is_available(self) -> bool:
        """Check if the server answers /models."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._base_url}/models", headers=self._headers)
                return resp.status_code == 200
        except (httpx.HTTPError, OSError) as e:
            logger.debug("OpenAI-compatible availability check failed: %s", e)
            return False
