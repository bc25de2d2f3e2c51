"""Retrieval-augmented chat."""

from src.application.rag_chat.dto import QueryState, RagChatRequest, RagChatResult
from src.application.rag_chat.use_case import RagChatUseCase

__all__ = ["QueryState", "RagChatRequest", "RagChatResult", "RagChatUseCase"]
