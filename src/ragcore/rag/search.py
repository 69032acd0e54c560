"""Two-tier similarity search over a CorpusStore.

Strategy:
  1. search_indexed(): nearest-neighbour query via the store's vector index
     (persistent backend only). score = 1 - cosine distance; results scoring
     below ``min_similarity`` (default 0.1) are dropped.
  2. search_exact()  : fetch candidates, cosine-score every one in Python,
     stable sort so equal scores keep insertion order. No similarity floor.

search() tries (1) when the store supports it and falls back to (2) on any
error. It never raises: total failure is logged and yields [].
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from ragcore.db.base import CorpusStore
from ragcore.db.models import CorpusRecord

logger = logging.getLogger(__name__)

MIN_SIMILARITY = 0.1


@dataclass
class SearchResult:
    """A ranked corpus match.

    Attributes:
        chunk: The matched record's content.
        score: Cosine similarity to the query (higher = more relevant).
        metadata: The record's metadata map.
        source: Source label of the record.
        chunk_index: Position of the chunk in its ingestion call.
        id: Store-assigned record id.
    """

    chunk: str
    score: float
    metadata: dict = field(default_factory=dict)
    source: str = ""
    chunk_index: int = 0
    id: int | None = None


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """dot(a, b) / (|a| * |b|).

    Returns 0.0 instead of raising when the vectors differ in length, are
    empty, or either has zero magnitude.
    """
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def search(
    store: CorpusStore,
    query_embedding: list[float],
    top_k: int,
    source: str | None = None,
    *,
    min_similarity: float = MIN_SIMILARITY,
) -> list[SearchResult]:
    """Return up to *top_k* matches for *query_embedding*, best first."""
    if top_k < 1:
        return []

    if store.supports_index:
        try:
            return search_indexed(
                store, query_embedding, top_k, source, min_similarity=min_similarity
            )
        except Exception as exc:
            logger.warning("[SEARCH] Indexed search failed, using exact fallback: %s", exc)

    try:
        return search_exact(store, query_embedding, top_k, source)
    except Exception as exc:
        logger.error("[SEARCH] Exact search failed: %s", exc)
        return []


def search_indexed(
    store: CorpusStore,
    query_embedding: list[float],
    top_k: int,
    source: str | None = None,
    *,
    min_similarity: float = MIN_SIMILARITY,
) -> list[SearchResult]:
    """Nearest-neighbour path. Raises whatever the store's index raises."""
    matches = store.search_index(query_embedding, top_k, source)
    results = [_to_result(record, 1.0 - distance) for record, distance in matches]
    results = [r for r in results if r.score >= min_similarity]
    results.sort(key=lambda r: r.score, reverse=True)
    return results[:top_k]


def search_exact(
    store: CorpusStore,
    query_embedding: list[float],
    top_k: int,
    source: str | None = None,
) -> list[SearchResult]:
    """Brute-force cosine path over every candidate matching *source*."""
    candidates = store.fetch(source)
    scored = [
        _to_result(record, cosine_similarity(query_embedding, record.embedding))
        for record in candidates
    ]
    # list.sort is stable: equal scores keep fetch (insertion) order.
    scored.sort(key=lambda r: r.score, reverse=True)
    return scored[:top_k]


def _to_result(record: CorpusRecord, score: float) -> SearchResult:
    return SearchResult(
        chunk=record.content,
        score=score,
        metadata=dict(record.metadata),
        source=record.source,
        chunk_index=record.chunk_index,
        id=record.id,
    )
