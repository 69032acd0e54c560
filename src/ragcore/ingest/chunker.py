"""Word-window chunker for corpus ingestion.

A token is a whitespace-delimited word. The same measure is used for chunk
boundaries and for the ``token_count`` reported on each Chunk, so swapping
in a different tokenizer only requires changing ``_WORD_RE``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from ragcore.db.models import DEFAULT_SOURCE, Chunk

DEFAULT_MAX_TOKENS = 500

_WORD_RE = re.compile(r"\S+")


def count_tokens(text: str) -> int:
    """Number of whitespace-delimited words in *text*."""
    return sum(1 for _ in _WORD_RE.finditer(text))


def split_on_tokens(text: str, max_tokens: int) -> Iterator[str]:
    """Yield consecutive segments of at most *max_tokens* words.

    Words are re-joined with single spaces. A word longer than any sensible
    limit is still one token, so every segment holds at least one word and
    the generator always terminates. Whitespace-only input yields nothing.

    Raises:
        ValueError: If max_tokens < 1 (raised on first iteration).
    """
    if max_tokens < 1:
        raise ValueError(f"max_tokens must be >= 1, got {max_tokens}")

    window: list[str] = []
    for match in _WORD_RE.finditer(text):
        window.append(match.group())
        if len(window) == max_tokens:
            yield " ".join(window)
            window = []
    if window:
        yield " ".join(window)


class TextChunker:
    """Split one or more texts into sequentially indexed Chunks.

    Chunk indices run 0..N-1 across the flattened output of all texts in a
    single call; which text a chunk came from is not tracked.
    """

    def __init__(self, max_tokens: int = DEFAULT_MAX_TOKENS) -> None:
        if max_tokens < 1:
            raise ValueError("max_tokens must be >= 1")
        self.max_tokens = max_tokens

    def chunk(self, texts: Iterable[str], source: str | None = None) -> list[Chunk]:
        label = DEFAULT_SOURCE if source is None else source
        segments = (
            segment for text in texts for segment in split_on_tokens(text, self.max_tokens)
        )
        return [
            Chunk(text=segment, chunk_index=i, source=label, token_count=count_tokens(segment))
            for i, segment in enumerate(segments)
        ]
