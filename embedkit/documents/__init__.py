"""Document processing module."""

from embedkit.documents.chunker import (
    CharacterChunker,
    Chunker,
    ChunkStrategy,
    NewlineChunker,
    PatternChunker,
    PunctuationChunker,
    chunk_text,
    get_chunker,
)

__all__ = [
    "CharacterChunker",
    "ChunkStrategy",
    "Chunker",
    "NewlineChunker",
    "PatternChunker",
    "PunctuationChunker",
    "chunk_text",
    "get_chunker",
]
