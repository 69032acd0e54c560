"""In-memory corpus store: parallel record/vector lists owned by the instance.

No locking: concurrent writers and readers must be serialised by the caller,
otherwise a reader can observe records and vectors of different lengths.
"""

from __future__ import annotations

import copy
import itertools

from ragcore.db.base import CorpusStore
from ragcore.db.models import CorpusRecord, utc_now
from ragcore.errors import RecordNotFoundError


class MemoryCorpusStore(CorpusStore):
    """Array-backed corpus store for tests and single-process use.

    Has no vector index; the search engine always uses the exact path.
    Records handed out by ``fetch`` are copies, so callers cannot mutate
    stored state except through ``update_one``.
    """

    supports_index = False

    def __init__(self) -> None:
        self._records: list[CorpusRecord] = []
        self._vectors: list[list[float]] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._records)

    def insert_many(self, records: list[CorpusRecord]) -> int:
        now = utc_now()
        for record in records:
            record.id = next(self._ids)
            record.created_at = now
            record.updated_at = now
            self._records.append(copy.deepcopy(record))
            self._vectors.append(list(record.embedding))
        return len(records)

    def fetch(self, source: str | None = None) -> list[CorpusRecord]:
        matched: list[CorpusRecord] = []
        for record, vector in zip(self._records, self._vectors):
            if source is not None and record.source != source:
                continue
            out = copy.deepcopy(record)
            out.embedding = list(vector)
            matched.append(out)
        return matched

    def delete_where(self, source: str | None = None) -> int:
        if source is None:
            removed = len(self._records)
            self._records.clear()
            self._vectors.clear()
            return removed

        keep = [
            (record, vector)
            for record, vector in zip(self._records, self._vectors)
            if record.source != source
        ]
        removed = len(self._records) - len(keep)
        self._records = [record for record, _ in keep]
        self._vectors = [vector for _, vector in keep]
        return removed

    def update_one(
        self,
        record_id: int,
        content: str,
        embedding: list[float],
        source: str | None = None,
    ) -> CorpusRecord:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                break
        else:
            raise RecordNotFoundError(record_id)

        record.content = content
        record.embedding = list(embedding)
        if source is not None:
            record.source = source
        record.updated_at = utc_now()
        self._vectors[i] = list(embedding)
        return copy.deepcopy(record)

    def search_index(
        self,
        embedding: list[float],
        top_k: int,
        source: str | None = None,
    ) -> list[tuple[CorpusRecord, float]]:
        raise NotImplementedError("MemoryCorpusStore has no vector index")
