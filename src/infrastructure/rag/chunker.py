"""Document chunker - splits sources into token-bounded chunks for embedding.

Chunks partition the source: concatenating chunk texts in order gives back
the source exactly, and no chunk holds more than the configured capacity.
"""

import logging
import re
from typing import Protocol

from src.domain.entities.documents import DocumentChunk

logger = logging.getLogger(__name__)


class Tokenizer(Protocol):
    """Splits text into token pieces whose concatenation is the text."""

    def tokenize(self, text: str) -> list[str]:
        ...


class WordTokenizer:
    """A token is a word plus its trailing whitespace.

    Leading whitespace of the text forms a token of its own.
    """

    _pattern = re.compile(r"\s+|\S+\s*")

    def tokenize(self, text: str) -> list[str]:
        return self._pattern.findall(text)


class DocumentChunker:
    """Greedy token-window chunker."""

    def __init__(self, tokenizer: Tokenizer | None = None, respect_boundaries: bool = False) -> None:
        """Args:
        tokenizer: token splitter (default WordTokenizer)
        respect_boundaries: prefer to end chunks after a line break, never below half capacity

        """
        self._tokenizer = tokenizer or WordTokenizer()
        self._respect_boundaries = respect_boundaries

    def count_tokens(self, text: str) -> int:
        return len(self._tokenizer.tokenize(text))

    def chunk(self, source_text: str, capacity_tokens: int, source_id: str = "") -> list[DocumentChunk]:
        """Split source_text into chunks of at most capacity_tokens tokens.

        Raises:
            ValueError: If capacity_tokens < 1

        """
        if capacity_tokens < 1:
            raise ValueError("capacity_tokens must be >= 1")
        if not source_text:
            return []

        tokens = self._tokenizer.tokenize(source_text)
        chunks: list[DocumentChunk] = []
        start = 0
        while start < len(tokens):
            end = min(start + capacity_tokens, len(tokens))
            if self._respect_boundaries and end < len(tokens):
                end = self._boundary_end(tokens, start, end, capacity_tokens)
            chunks.append(
                DocumentChunk(
                    source_id=source_id,
                    sequence_index=len(chunks),
                    text="".join(tokens[start:end]),
                    token_count=end - start,
                )
            )
            start = end

        logger.debug(
            "Chunked source=%s: tokens=%d, chunks=%d, capacity=%d",
            source_id,
            len(tokens),
            len(chunks),
            capacity_tokens,
        )
        return chunks

    @staticmethod
    def _boundary_end(tokens: list[str], start: int, end: int, capacity: int) -> int:
        """Latest end in the window's second half that follows a line break; else end."""
        floor = start + max(1, capacity // 2)
        for i in range(end, floor - 1, -1):
            if "\n" in tokens[i - 1]:
                return i
        return end
