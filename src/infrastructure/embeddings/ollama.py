"""Ollama embeddings adapter - POST /api/embed.

Connection errors are retried with exponential backoff (bounded attempts);
every failure surfaces as ModelError.
"""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.errors import ModelError
from src.domain.ports.config import EmbeddingsConfig, OllamaConfig

logger = logging.getLogger(__name__)


class OllamaEmbeddingsAdapter:
    """Ollama embeddings via POST /api/embed."""

    def __init__(self, config: OllamaConfig, embeddings_config: EmbeddingsConfig) -> None:
        self._host = config.host.rstrip("/")
        self._model = embeddings_config.model
        self._timeout = config.timeout
        self._attempts = embeddings_config.retry_attempts

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        result = await self.embed_batch([text])
        return result[0] if result else []

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts. Raises ModelError."""
        if not texts:
            return []

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
                stop=stop_after_attempt(self._attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                reraise=True,
            ):
                with attempt:
                    data = await self._post(texts)
        except httpx.HTTPStatusError as e:
            logger.error("Ollama embedding error %s: %s", e.response.status_code, e.response.text[:200])
            raise ModelError(f"embedding request failed with HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            logger.warning("Ollama embedding timed out after %ss", self._timeout)
            raise ModelError("embedding request timed out") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Ollama embedding failed: %s", e)
            raise ModelError(f"embedding request failed: {e}") from e

        embeddings = data.get("embeddings", []) if isinstance(data, dict) else []
        if len(embeddings) != len(texts):
            logger.warning("Embedding count mismatch: got %d, expected %d", len(embeddings), len(texts))
            embeddings = (list(embeddings) + [[]] * len(texts))[: len(texts)]
        return embeddings

    async def _post(self, texts: list[str]) -> dict:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.post(
                f"{self._host}/api/embed",
                json={"model": self._model, "input": texts},
            )
            resp.raise_for_status()
            return resp.json()
