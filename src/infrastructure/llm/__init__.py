"""Chat-completion adapters - Ollama, OpenAI-compatible."""

from src.infrastructure.llm.ollama import OllamaAdapter
from src.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter

__all__ = ["OllamaAdapter", "OpenAICompatibleAdapter"]
