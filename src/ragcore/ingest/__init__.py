"""ragcore ingest pipeline: text chunking."""

from ragcore.ingest.chunker import (
    DEFAULT_MAX_TOKENS,
    TextChunker,
    count_tokens,
    split_on_tokens,
)

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "TextChunker",
    "count_tokens",
    "split_on_tokens",
]
