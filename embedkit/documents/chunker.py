"""Text chunking strategies used before embedding a document."""

import re
from abc import ABC, abstractmethod
from enum import Enum

from embedkit.exceptions import ValidationError


class ChunkStrategy(str, Enum):
    """How a document is split into chunks."""

    NEWLINE = "newline"
    PUNCTUATION = "punctuation"
    CHARACTERS = "characters"
    REGEX = "regex"


class Chunker(ABC):
    """Abstract base class for text chunkers."""

    @abstractmethod
    def chunk(self, text: str) -> list[str]:
        """Split text into chunks.

        Args:
            text: The text to chunk.

        Returns:
            List of chunk strings, in document order.
        """
        ...


class PatternChunker(Chunker):
    """Split on a regular expression and drop blank pieces."""

    def __init__(self, pattern: str | re.Pattern[str]) -> None:
        try:
            self.pattern = re.compile(pattern)
        except re.error as e:
            raise ValidationError(
                f"Invalid chunking pattern: {e}",
                details={"pattern": str(pattern)},
            ) from e

    def chunk(self, text: str) -> list[str]:
        """Split text at every pattern match."""
        # Unmatched optional groups split out as None.
        return [piece for piece in self.pattern.split(text) if piece and piece.strip()]


class NewlineChunker(PatternChunker):
    """One chunk per non-blank line."""

    def __init__(self) -> None:
        super().__init__(r"\n")


class PunctuationChunker(PatternChunker):
    """Split at English and CJK sentence-ending punctuation."""

    def __init__(self) -> None:
        super().__init__(r"[.!?。！？]")


class CharacterChunker(Chunker):
    """Fixed-size character windows; the last one may be shorter."""

    DEFAULT_SIZE = 1000

    def __init__(self, size: int = DEFAULT_SIZE) -> None:
        if size < 1:
            raise ValidationError(
                "Chunk size must be at least 1",
                details={"size": size},
            )
        self.size = size

    def chunk(self, text: str) -> list[str]:
        """Split text every ``size`` characters."""
        return [text[i : i + self.size] for i in range(0, len(text), self.size)]


def get_chunker(
    strategy: ChunkStrategy | str,
    value: str | int | None = None,
) -> Chunker:
    """Build the chunker for ``strategy``.

    Args:
        strategy: Chunking strategy.
        value: Window size for ``characters``, pattern for ``regex``.

    Returns:
        Configured chunker.

    Raises:
        ValidationError: If the strategy is unknown or its value is invalid.
    """
    try:
        strategy = ChunkStrategy(strategy)
    except ValueError as e:
        raise ValidationError(
            f"Invalid chunking type: {strategy}",
            details={"choices": [s.value for s in ChunkStrategy]},
        ) from e

    if strategy is ChunkStrategy.NEWLINE:
        return NewlineChunker()
    if strategy is ChunkStrategy.PUNCTUATION:
        return PunctuationChunker()
    if strategy is ChunkStrategy.CHARACTERS:
        if value in (None, ""):
            return CharacterChunker()
        try:
            return CharacterChunker(int(value))
        except ValueError as e:
            raise ValidationError(
                f"Chunk size must be an integer, got {value!r}",
                details={"value": value},
            ) from e

    if not value or not isinstance(value, str):
        raise ValidationError("Regex pattern is required for regex chunking")
    return PatternChunker(value)


def chunk_text(
    text: str,
    strategy: ChunkStrategy | str = ChunkStrategy.NEWLINE,
    value: str | int | None = None,
) -> list[str]:
    """Split ``text`` with the given strategy."""
    return get_chunker(strategy, value).chunk(text)
