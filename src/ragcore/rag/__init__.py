"""ragcore retrieval: embedding client, similarity search, corpus manager."""

from ragcore.rag.embedder import EmbeddingClient, EmbeddingFailure
from ragcore.rag.manager import CorpusManager, CorpusStats, SourceStats
from ragcore.rag.search import (
    MIN_SIMILARITY,
    SearchResult,
    cosine_similarity,
    search,
    search_exact,
    search_indexed,
)

__all__ = [
    "CorpusManager",
    "CorpusStats",
    "EmbeddingClient",
    "EmbeddingFailure",
    "MIN_SIMILARITY",
    "SearchResult",
    "SourceStats",
    "cosine_similarity",
    "search",
    "search_exact",
    "search_indexed",
]
