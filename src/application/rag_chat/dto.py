"""RAG chat DTOs."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from src.domain.entities.documents import RetrievedContext
from src.domain.ports.llm import Conversation, LLMMessage
from src.domain.ports.search import SearchOutput


class RagChatRequest(BaseModel):
    """Request for a retrieval-augmented completion.

    messages = full conversation; the last user message is the query.
    use_rag / use_web_search: None = server default.
    """

    messages: list[LLMMessage] = Field(..., min_length=1)
    max_tokens: int | None = Field(None, ge=1)
    use_rag: bool | None = None
    use_web_search: bool | None = None
    limit: int | None = Field(None, ge=1, le=100)
    score_threshold: float | None = Field(None, ge=0.0, le=1.0)


class QueryState(str, Enum):
    IDLE = "idle"
    RETRIEVING = "retrieving"
    MERGING = "merging"
    READY = "ready"


@dataclass
class QueryTrace:
    """Per-query state history and which retrieval paths degraded."""

    states: list[QueryState] = field(default_factory=lambda: [QueryState.IDLE])
    degraded: dict[str, str] = field(default_factory=dict)

    @property
    def state(self) -> QueryState:
        return self.states[-1]

    def advance(self, state: QueryState) -> None:
        self.states.append(state)


@dataclass
class RagChatResult:
    """Completion plus the context that shaped it."""

    content: str
    conversation: Conversation
    retrieved: list[RetrievedContext]
    search_output: SearchOutput
    trace: QueryTrace
