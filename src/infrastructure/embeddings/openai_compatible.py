"""OpenAI-compatible embeddings - LM Studio, vLLM, LocalAI, LlamaEdge via POST /v1/embeddings."""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.errors import ModelError
from src.domain.ports.config import EmbeddingsConfig, OpenAICompatibleConfig

logger = logging.getLogger(__name__)


class OpenAICompatibleEmbeddingsAdapter:
    """Embeddings via POST {base_url}/embeddings."""

    def __init__(
        self,
        config: OpenAICompatibleConfig,
        embeddings_config: EmbeddingsConfig,
    ) -> None:
        self._base_url = config.base_url.rstrip("/")
        self._model = embeddings_config.model
        self._timeout = config.timeout
        self._attempts = embeddings_config.retry_attempts
        self._headers = {"Content-Type": "application/json"}
        if config.api_key:
            self._headers["Authorization"] = f"Bearer {config.api_key}"

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        result = await self.embed_batch([text])
        return result[0] if result else []

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts. OpenAI API accepts array input. Raises ModelError."""
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
            logger.error("Embedding API error %s: %s", e.response.status_code, e.response.text[:200])
            raise ModelError(f"embedding request failed with HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            logger.warning("Embedding request timed out after %ss", self._timeout)
            raise ModelError("embedding request timed out") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Embedding request failed: %s", e)
            raise ModelError(f"embedding request failed: {e}") from e

        items = data.get("data", []) if isinstance(data, dict) else []
        if not items:
            logger.warning("Empty embedding response")
            return [[] for _ in texts]

        # OpenAI format: data[].embedding, sorted by index
        items = sorted(items, key=lambda x: x.get("index", 0))
        embeddings = [item.get("embedding", []) for item in items]
        if len(embeddings) != len(texts):
            logger.warning("Embedding count mismatch: got %d, expected %d", len(embeddings), len(texts))
            embeddings = (embeddings + [[]] * len(texts))[: len(texts)]
        return embeddings

    async def _post(self, texts: list[str]) -> dict:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.post(
                f"{self._base_url}/embeddings",
                json={"model": self._model, "input": texts},
                headers=self._headers,
            )
            resp.raise_for_status()
            return resp.json()
