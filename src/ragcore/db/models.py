"""Domain models for the ragcore corpus layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

DEFAULT_SOURCE = "unknown"


def utc_now() -> str:
    """Current UTC time in SQLite's ``datetime('now')`` format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


@dataclass(frozen=True)
class Chunk:
    text: str
    chunk_index: int
    source: str = DEFAULT_SOURCE
    token_count: int = 0


@dataclass
class CorpusRecord:
    """A persisted chunk together with its embedding.

    Attributes:
        content: Chunk text, stored unchanged.
        embedding: Vector produced for ``content``.
        source: Label grouping records from one document or ingestion batch.
        chunk_index: 0-based position in the ingestion call that created it.
        metadata: Opaque key/value map (JSON-serialisable).
        created_at: Insert timestamp, set by the store.
        updated_at: Last update timestamp, set by the store.
        id: Store-assigned identifier; None for unsaved records.
    """

    content: str
    embedding: list[float]
    source: str = DEFAULT_SOURCE
    chunk_index: int = 0
    metadata: dict = field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None
    id: int | None = None  # set after insert
