"""Context Merger - folds retrieved context into a conversation.

Two placements are supported:
- system-message: context goes into the system message ahead of the history
- last-user-message: context is appended to the latest user message

system-message is downgraded to last-user-message when the chat template has
no system slot. The downgrade is logged and exposed on the merger.
"""

import logging
from collections.abc import Sequence
from enum import Enum

from src.domain.entities.documents import RetrievedContext
from src.domain.errors import ConfigError
from src.domain.ports.llm import Conversation, LLMMessage
from src.domain.ports.search import SearchOutput, SearchResult
from src.domain.services.chat_templates import ChatTemplate

logger = logging.getLogger(__name__)

DEFAULT_RAG_PROMPT = (
    "Use the following pieces of context to answer the user's question.\n"
    "If you don't know the answer, just say that you don't know, don't try to make up an answer.\n"
    "----------------\n"
)


class MergePolicy(str, Enum):
    """Where retrieved context lands in the conversation."""

    SYSTEM_MESSAGE = "system-message"
    LAST_USER_MESSAGE = "last-user-message"

    @classmethod
    def parse(cls, value: "str | MergePolicy") -> "MergePolicy":
        if isinstance(value, MergePolicy):
            return value
        normalized = value.strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigError(
                f"Unknown RAG policy {value!r}. Expected one of: {', '.join(p.value for p in cls)}"
            ) from None


def resolve_policy(policy: MergePolicy, template: ChatTemplate | None) -> MergePolicy:
    """Downgrade system-message to last-user-message when the template has no system slot."""
    if policy == MergePolicy.SYSTEM_MESSAGE and template is not None and not template.has_system_prompt:
        logger.warning(
            "The chat template %s does not support system messages while the RAG policy is %s. "
            "Updating the RAG policy to %s.",
            template.value,
            policy.value,
            MergePolicy.LAST_USER_MESSAGE.value,
        )
        return MergePolicy.LAST_USER_MESSAGE
    return policy


def format_search_result(result: SearchResult) -> str:
    """Render one web result as a context block."""
    if result.site_name and result.url:
        header = f"{result.site_name} ({result.url})"
    else:
        header = result.site_name or result.url
    if header and result.text_content:
        return f"{header}\n{result.text_content}"
    return header or result.text_content


def build_context_text(
    retrieved_context: Sequence[RetrievedContext],
    search_output: SearchOutput | None,
) -> str:
    """Join chunk texts (rank order) then web results, separated by blank lines."""
    parts = [c.chunk_text for c in retrieved_context if c.chunk_text]
    if search_output is not None:
        parts.extend(block for block in map(format_search_result, search_output.results) if block)
    return "\n\n".join(parts)


class ContextMerger:
    """Applies the configured merge policy. Immutable after construction."""

    def __init__(
        self,
        policy: MergePolicy | str = MergePolicy.SYSTEM_MESSAGE,
        template: ChatTemplate | str | None = None,
        rag_prompt: str | None = None,
    ) -> None:
        self._configured_policy = MergePolicy.parse(policy)
        self._template = ChatTemplate.parse(template) if template is not None else None
        self._policy = resolve_policy(self._configured_policy, self._template)
        self._rag_prompt = DEFAULT_RAG_PROMPT if rag_prompt is None else rag_prompt

    @property
    def configured_policy(self) -> MergePolicy:
        return self._configured_policy

    @property
    def effective_policy(self) -> MergePolicy:
        return self._policy

    @property
    def downgraded(self) -> bool:
        """True when system-message was configured but cannot be honoured."""
        return self._policy != self._configured_policy

    def merge(
        self,
        conversation: Conversation,
        retrieved_context: Sequence[RetrievedContext] = (),
        search_output: SearchOutput | None = None,
    ) -> Conversation:
        """Return a new conversation with the context merged in.

        With no context at all the result equals the input conversation.
        """
        merged = [m.model_copy() for m in conversation]
        context = build_context_text(retrieved_context, search_output)
        if not context:
            return merged

        if self._policy == MergePolicy.SYSTEM_MESSAGE:
            return self._merge_into_system(merged, context)
        return self._merge_into_last_user(merged, context)

    def _merge_into_system(self, messages: Conversation, context: str) -> Conversation:
        block = f"{self._rag_prompt}{context}"
        if messages and messages[0].role == "system":
            original = messages[0].content
            content = f"{original}\n\n{block}" if original else block
            messages[0] = LLMMessage(role="system", content=content)
        else:
            messages.insert(0, LLMMessage(role="system", content=block))
        return messages

    def _merge_into_last_user(self, messages: Conversation, context: str) -> Conversation:
        for i in range(len(messages) - 1, -1, -1):
            if messages[i].role == "user":
                messages[i] = LLMMessage(role="user", content=messages[i].content + context)
                return messages
        logger.warning("No user message to carry RAG context; appending a new user message")
        messages.append(LLMMessage(role="user", content=context))
        return messages


def merge(
    conversation: Conversation,
    retrieved_context: Sequence[RetrievedContext],
    search_output: SearchOutput | None,
    policy: MergePolicy | str,
    template: ChatTemplate | str | None = None,
    rag_prompt: str | None = None,
) -> Conversation:
    """One-shot merge without keeping a ContextMerger around."""
    return ContextMerger(policy, template, rag_prompt).merge(conversation, retrieved_context, search_output)
