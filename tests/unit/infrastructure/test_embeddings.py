"""Tests for embeddings adapters."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.domain.errors import ModelError
from src.domain.ports.config import EmbeddingsConfig, OllamaConfig, OpenAICompatibleConfig
from src.infrastructure.embeddings.ollama import OllamaEmbeddingsAdapter
from src.infrastructure.embeddings.openai_compatible import OpenAICompatibleEmbeddingsAdapter


def _response(payload: dict) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.raise_for_status = MagicMock()
    mock_response.json.return_value = payload
    return mock_response


class TestOllamaEmbeddingsAdapter:
    """Tests for OllamaEmbeddingsAdapter."""

    @pytest.fixture
    def adapter(self):
        return OllamaEmbeddingsAdapter(
            OllamaConfig(host="http://localhost:11434", timeout=30),
            EmbeddingsConfig(model="nomic-embed-text", retry_attempts=1),
        )

    @pytest.mark.asyncio
    async def test_embed_single_text(self, adapter):
        """embed returns embedding for single text."""
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=_response({"embeddings": [[0.1, 0.2, 0.3]]}))
            mock_client.return_value.__aenter__.return_value.post = post
            result = await adapter.embed("Hello world")

        assert result == [0.1, 0.2, 0.3]
        assert post.call_args.kwargs["json"] == {"model": "nomic-embed-text", "input": ["Hello world"]}

    @pytest.mark.asyncio
    async def test_embed_batch(self, adapter):
        """embed_batch returns embeddings for multiple texts."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_response({"embeddings": [[0.1, 0.2], [0.3, 0.4], [0.5, 0.6]]})
            )
            result = await adapter.embed_batch(["text1", "text2", "text3"])

        assert len(result) == 3
        assert result[0] == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_embed_batch_empty(self, adapter):
        """embed_batch returns empty list for empty input."""
        assert await adapter.embed_batch([]) == []

    @pytest.mark.asyncio
    async def test_short_response_is_padded(self, adapter):
        """Missing embeddings come back as empty vectors, one per text."""
        with patch.object(adapter, "_post", AsyncMock(return_value={"embeddings": [[1.0]]})):
            result = await adapter.embed_batch(["a", "b"])
        assert result == [[1.0], []]

    @pytest.mark.asyncio
    async def test_http_error_is_model_error(self, adapter):
        request = httpx.Request("POST", "http://localhost:11434/api/embed")
        error = httpx.HTTPStatusError("boom", request=request, response=httpx.Response(500, request=request))
        with patch.object(adapter, "_post", AsyncMock(side_effect=error)):
            with pytest.raises(ModelError, match="HTTP 500"):
                await adapter.embed("text")

    @pytest.mark.asyncio
    async def test_connection_error_is_retried(self):
        adapter = OllamaEmbeddingsAdapter(OllamaConfig(), EmbeddingsConfig(retry_attempts=2))
        post = AsyncMock(side_effect=[httpx.ConnectError("refused"), {"embeddings": [[0.5]]}])
        with patch.object(adapter, "_post", post):
            assert await adapter.embed("text") == [0.5]
        assert post.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        adapter = OllamaEmbeddingsAdapter(OllamaConfig(), EmbeddingsConfig(retry_attempts=2))
        post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch.object(adapter, "_post", post):
            with pytest.raises(ModelError):
                await adapter.embed("text")
        assert post.await_count == 2


class TestOpenAICompatibleEmbeddingsAdapter:
    """Tests for OpenAICompatibleEmbeddingsAdapter."""

    @pytest.fixture
    def adapter(self):
        return OpenAICompatibleEmbeddingsAdapter(
            OpenAICompatibleConfig(base_url="http://localhost:1234/v1", api_key="k"),
            EmbeddingsConfig(model="text-embedding", retry_attempts=1),
        )

    @pytest.mark.asyncio
    async def test_sorts_by_index(self, adapter):
        payload = {"data": [{"index": 1, "embedding": [0.2]}, {"index": 0, "embedding": [0.1]}]}
        with patch.object(adapter, "_post", AsyncMock(return_value=payload)):
            assert await adapter.embed_batch(["a", "b"]) == [[0.1], [0.2]]

    @pytest.mark.asyncio
    async def test_empty_data(self, adapter):
        with patch.object(adapter, "_post", AsyncMock(return_value={"data": []})):
            assert await adapter.embed_batch(["a", "b"]) == [[], []]

    @pytest.mark.asyncio
    async def test_sends_bearer_token(self, adapter):
        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=_response({"data": [{"index": 0, "embedding": [1.0]}]}))
            mock_client.return_value.__aenter__.return_value.post = post
            await adapter.embed("a")
        assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer k"

    @pytest.mark.asyncio
    async def test_timeout_is_model_error(self, adapter):
        with patch.object(adapter, "_post", AsyncMock(side_effect=httpx.ReadTimeout("slow"))):
            with pytest.raises(ModelError, match="timed out"):
                await adapter.embed("a")
