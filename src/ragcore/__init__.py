"""ragcore: retrieval-augmented context engine.

Chunk text, embed it, store it, and find the passages most similar to a query.
``CorpusManager`` is the entry point; stores are chosen at construction.
"""

from ragcore.db.memory import MemoryCorpusStore
from ragcore.db.repository import SqliteCorpusStore
from ragcore.errors import (
    ConfigurationError,
    EmbeddingError,
    ProviderError,
    RagCoreError,
    RecordNotFoundError,
    StoreError,
)
from ragcore.rag.embedder import EmbeddingClient
from ragcore.rag.manager import CorpusManager, CorpusStats, SourceStats
from ragcore.rag.search import SearchResult, cosine_similarity

__all__ = [
    "ConfigurationError",
    "CorpusManager",
    "CorpusStats",
    "EmbeddingClient",
    "EmbeddingError",
    "MemoryCorpusStore",
    "ProviderError",
    "RagCoreError",
    "RecordNotFoundError",
    "SearchResult",
    "SourceStats",
    "SqliteCorpusStore",
    "StoreError",
    "cosine_similarity",
]
