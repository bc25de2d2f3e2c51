"""LLM Port - interface for chat-completion providers."""

from typing import Protocol

from pydantic import BaseModel


class LLMMessage(BaseModel):
    """Single message in a conversation."""

    role: str  # "system" | "user" | "assistant"
    content: str


# Conversation = ordered list of messages, owned by the request.
Conversation = list[LLMMessage]


class LLMPort(Protocol):
    """Interface for chat-completion providers (Ollama, LM Studio, etc.)."""

    async def complete(self, conversation: Conversation, token_budget: int | None = None) -> str:
        """Produce a completion for the conversation. Raises ModelError."""
        ...

    async def is_available(self) -> bool:
        """Check if the LLM provider is available."""
        ...
