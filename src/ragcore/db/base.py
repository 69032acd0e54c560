"""Corpus store contract shared by the persistent and in-memory backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ragcore.db.models import CorpusRecord


class CorpusStore(ABC):
    """Abstract base for corpus record persistence.

    Backends are chosen at construction time and passed to the search engine
    and corpus manager explicitly. ``supports_index`` tells the search engine
    whether a nearest-neighbour fast path is worth attempting.
    """

    supports_index: bool = False

    @abstractmethod
    def insert_many(self, records: list[CorpusRecord]) -> int:
        """Persist *records* and return the number inserted.

        Assigns ``id``, ``created_at`` and ``updated_at`` on each record.
        """

    @abstractmethod
    def fetch(self, source: str | None = None) -> list[CorpusRecord]:
        """Return records matching *source* (all if None) in insertion order."""

    @abstractmethod
    def delete_where(self, source: str | None = None) -> int:
        """Delete records matching *source* (all if None). Returns count removed."""

    @abstractmethod
    def update_one(
        self,
        record_id: int,
        content: str,
        embedding: list[float],
        source: str | None = None,
    ) -> CorpusRecord:
        """Replace content and embedding (and optionally source) of one record.

        Raises:
            RecordNotFoundError: If no record has *record_id*.
        """

    @abstractmethod
    def search_index(
        self,
        embedding: list[float],
        top_k: int,
        source: str | None = None,
    ) -> list[tuple[CorpusRecord, float]]:
        """Nearest-neighbour search. Returns (record, distance) sorted by distance.

        Only called when ``supports_index`` is True; backends without an index
        raise NotImplementedError.
        """
