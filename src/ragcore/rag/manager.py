"""Corpus manager: the single entry point for ingestion and retrieval.

  load_corpus       texts → chunks → embeddings → store (failed items dropped)
  find_similar      query → embedding → ranked chunks (never raises)
  clear_corpus      delete by source, or everything
  get_corpus_stats  counts, sources, average chunk length
  update_embedding  re-embed one record in place
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from ragcore.db.base import CorpusStore
from ragcore.db.models import DEFAULT_SOURCE, CorpusRecord
from ragcore.errors import EmbeddingError, ProviderError, RagCoreError
from ragcore.ingest.chunker import DEFAULT_MAX_TOKENS, TextChunker
from ragcore.rag.embedder import EmbeddingClient, EmbeddingFailure
from ragcore.rag.search import MIN_SIMILARITY, SearchResult, search

logger = logging.getLogger(__name__)

CREATED_BY = "rag_service"


@dataclass
class CorpusStats:
    """Aggregate view of the stored corpus (optionally for one source).

    Attributes:
        total_chunks: Number of stored records.
        sources: Distinct source labels, sorted.
        average_chunk_length: Mean content length in characters (0.0 if empty).
    """

    total_chunks: int = 0
    sources: list[str] = field(default_factory=list)
    average_chunk_length: float = 0.0


@dataclass
class SourceStats:
    """Per-source breakdown returned by CorpusManager.get_source_stats()."""

    source: str
    total_chunks: int
    average_chunk_length: float
    last_updated: str | None = None


class CorpusManager:
    """Orchestrate chunking, embedding, storage and search over one store.

    Args:
        store: Corpus store backend (persistent or in-memory).
        embedder: Embedding client used for both chunks and queries.
        chunker: Chunker for ingestion; defaults to 500-token windows.
        min_similarity: Floor applied by the indexed search path.
    """

    def __init__(
        self,
        store: CorpusStore,
        embedder: EmbeddingClient,
        chunker: TextChunker | None = None,
        min_similarity: float = MIN_SIMILARITY,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.chunker = chunker or TextChunker(DEFAULT_MAX_TOKENS)
        self.min_similarity = min_similarity

    async def load_corpus(self, texts: list[str], source: str | None = None) -> int:
        """Chunk, embed and store *texts*. Returns the number of records stored.

        Chunks whose embedding fails are dropped; the call succeeds as long as
        at least one chunk survives.

        Raises:
            ValueError: If *texts* is empty.
            ConfigurationError: If the embedding provider has no credentials.
            EmbeddingError: If no chunk could be embedded.
            StoreError: If the store rejects the insert.
        """
        if not texts:
            raise ValueError("load_corpus() requires at least one text")

        label = DEFAULT_SOURCE if source is None else source
        chunks = self.chunker.chunk(texts, label)
        if not chunks:
            raise EmbeddingError(f"No content to embed for source '{label}'")

        results = await self.embedder.embed_batch([c.text for c in chunks])

        records: list[CorpusRecord] = []
        for chunk, result in zip(chunks, results):
            if isinstance(result, EmbeddingFailure):
                continue
            records.append(
                CorpusRecord(
                    content=chunk.text,
                    embedding=result,
                    source=chunk.source,
                    chunk_index=chunk.chunk_index,
                    metadata={"created_by": CREATED_BY, "token_count": chunk.token_count},
                )
            )

        dropped = len(chunks) - len(records)
        if not records:
            logger.error("[CORPUS] All %d chunks failed to embed (source=%s)", len(chunks), label)
            raise EmbeddingError(f"All {len(chunks)} chunks failed to embed for source '{label}'")
        if dropped:
            logger.warning("[CORPUS] Dropped %d/%d chunks with failed embeddings", dropped, len(chunks))

        stored = self.store.insert_many(records)
        logger.info("[CORPUS] Stored %d chunks (source=%s)", stored, label)
        return stored

    async def find_similar(
        self, query: str, top_k: int = 3, source: str | None = None
    ) -> list[SearchResult]:
        """Return up to *top_k* records most similar to *query*, best first.

        Never raises: a failed query embedding is logged and yields [].
        """
        try:
            query_embedding = await self.embedder.embed(query)
        except RagCoreError as exc:
            logger.error("[CORPUS] Query embedding failed: %s", exc)
            return []
        return search(
            self.store, query_embedding, top_k, source, min_similarity=self.min_similarity
        )

    def clear_corpus(self, source: str | None = None) -> int:
        """Delete records for *source* (all records if None). Returns count removed."""
        removed = self.store.delete_where(source)
        logger.info("[CORPUS] Cleared %d chunks (source=%s)", removed, "*" if source is None else source)
        return removed

    def get_corpus_stats(self, source: str | None = None) -> CorpusStats:
        records = self.store.fetch(source)
        if not records:
            return CorpusStats()
        return CorpusStats(
            total_chunks=len(records),
            sources=sorted({r.source for r in records}),
            average_chunk_length=sum(len(r.content) for r in records) / len(records),
        )

    def get_source_stats(self) -> list[SourceStats]:
        """Per-source chunk counts, ordered by chunk count (desc) then name."""
        grouped: dict[str, list[CorpusRecord]] = defaultdict(list)
        for record in self.store.fetch():
            grouped[record.source].append(record)

        stats = [
            SourceStats(
                source=name,
                total_chunks=len(records),
                average_chunk_length=sum(len(r.content) for r in records) / len(records),
                last_updated=max((r.updated_at for r in records if r.updated_at), default=None),
            )
            for name, records in grouped.items()
        ]
        stats.sort(key=lambda s: (-s.total_chunks, s.source))
        return stats

    async def update_embedding(
        self, record_id: int, content: str, source: str | None = None
    ) -> CorpusRecord:
        """Re-embed *content* and replace record *record_id* in place.

        chunk_index is left unchanged.

        Raises:
            ConfigurationError: If the embedding provider has no credentials.
            EmbeddingError: If *content* could not be embedded.
            RecordNotFoundError: If no record has *record_id*.
            StoreError: If the store rejects the update.
        """
        try:
            embedding = await self.embedder.embed(content)
        except ProviderError as exc:
            raise EmbeddingError(f"Failed to embed content for record {record_id}: {exc}") from exc
        return self.store.update_one(record_id, content, embedding, source)
