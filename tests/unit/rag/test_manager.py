"""Tests for CorpusManager orchestration (both store backends)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ragcore.errors import (
    ConfigurationError,
    EmbeddingError,
    ProviderError,
    RecordNotFoundError,
    StoreError,
)
from ragcore.ingest.chunker import TextChunker
from ragcore.rag.embedder import EmbeddingClient
from ragcore.rag.manager import CorpusManager, CorpusStats

MODEL = "voyage/voyage-2"


@pytest.fixture
def manager(any_store, fake_provider):
    return CorpusManager(any_store, EmbeddingClient(MODEL))


# ------------------------------------------------------------------
# load_corpus
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_load_corpus_scenario_stats(manager):
    stored = await manager.load_corpus(["A quick brown fox", "A slow red fox"], "animals")
    assert stored == 2
    stats = manager.get_corpus_stats("animals")
    assert stats.total_chunks == 2
    assert stats.sources == ["animals"]


@pytest.mark.asyncio
async def test_load_corpus_indexes_flattened_chunks(any_store, fake_provider):
    mgr = CorpusManager(any_store, EmbeddingClient(MODEL), chunker=TextChunker(max_tokens=2))
    await mgr.load_corpus(["a b c", "d e"], "s")
    records = any_store.fetch("s")
    assert [r.content for r in records] == ["a b", "c", "d e"]
    assert [r.chunk_index for r in records] == [0, 1, 2]


@pytest.mark.asyncio
async def test_load_corpus_default_source_and_metadata(manager, vectorize):
    await manager.load_corpus(["hello world"])
    (record,) = manager.store.fetch()
    assert record.source == "unknown"
    assert record.metadata == {"created_by": "rag_service", "token_count": 2}
    assert record.embedding == vectorize("hello world")


@pytest.mark.asyncio
async def test_load_corpus_empty_source_is_its_own_label(manager):
    await manager.load_corpus(["hello world"], "")
    assert manager.get_corpus_stats("").total_chunks == 1
    assert manager.get_corpus_stats("unknown").total_chunks == 0
    assert [r.chunk for r in await manager.find_similar("hello world", source="")] == ["hello world"]
    assert manager.clear_corpus("") == 1


@pytest.mark.asyncio
async def test_load_corpus_drops_failed_chunks(any_store, api_key, monkeypatch, vectorize):
    async def flaky(model, input, **kwargs):
        if "poison" in input[0]:
            raise RuntimeError("quota exceeded")
        response = MagicMock()
        response.data = [{"embedding": vectorize(input[0])}]
        return response

    monkeypatch.setattr("ragcore.rag.embedder.litellm.aembedding", AsyncMock(side_effect=flaky))
    mgr = CorpusManager(any_store, EmbeddingClient(MODEL))

    stored = await mgr.load_corpus(["good one", "poison pill", "good two"], "s")

    assert stored == 2
    records = any_store.fetch()
    assert [r.content for r in records] == ["good one", "good two"]
    # Surviving chunks keep their original positions.
    assert [r.chunk_index for r in records] == [0, 2]


@pytest.mark.asyncio
async def test_load_corpus_all_failed_raises(any_store, api_key, monkeypatch):
    monkeypatch.setattr(
        "ragcore.rag.embedder.litellm.aembedding", AsyncMock(side_effect=RuntimeError("down"))
    )
    mgr = CorpusManager(any_store, EmbeddingClient(MODEL))
    with pytest.raises(EmbeddingError):
        await mgr.load_corpus(["text"], "s")
    assert any_store.fetch() == []


@pytest.mark.asyncio
async def test_load_corpus_blank_texts_raise(manager):
    with pytest.raises(EmbeddingError, match="No content"):
        await manager.load_corpus(["   "], "s")


@pytest.mark.asyncio
async def test_load_corpus_empty_list_raises(manager):
    with pytest.raises(ValueError):
        await manager.load_corpus([])


@pytest.mark.asyncio
async def test_load_corpus_missing_credentials(any_store, monkeypatch):
    monkeypatch.delenv("VOYAGE_API_KEY", raising=False)
    mgr = CorpusManager(any_store, EmbeddingClient(MODEL))
    with pytest.raises(ConfigurationError):
        await mgr.load_corpus(["text"])


@pytest.mark.asyncio
async def test_load_corpus_store_failure_surfaces(memory_store, fake_provider):
    mgr = CorpusManager(memory_store, EmbeddingClient(MODEL))
    with patch.object(memory_store, "insert_many", side_effect=StoreError("disk full")):
        with pytest.raises(StoreError):
            await mgr.load_corpus(["text"])


# ------------------------------------------------------------------
# find_similar
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_round_trip_hello_world(manager):
    await manager.load_corpus(["hello world"], "src")
    await manager.load_corpus(["unrelated banana smoothie"], "src")
    results = await manager.find_similar("hello world", 1, "src")
    assert len(results) == 1
    assert results[0].chunk == "hello world"
    assert results[0].score == pytest.approx(1.0, abs=1e-5)


@pytest.mark.asyncio
async def test_find_similar_default_top_k(manager):
    await manager.load_corpus([f"fox number {i}" for i in range(6)], "s")
    results = await manager.find_similar("fox number")
    assert len(results) <= 3
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_find_similar_query_failure_returns_empty(memory_store, api_key, monkeypatch):
    mgr = CorpusManager(memory_store, EmbeddingClient(MODEL))
    monkeypatch.setattr(
        "ragcore.rag.embedder.litellm.aembedding", AsyncMock(side_effect=RuntimeError("timeout"))
    )
    assert await mgr.find_similar("anything") == []


@pytest.mark.asyncio
async def test_find_similar_missing_credentials_returns_empty(memory_store, monkeypatch):
    monkeypatch.delenv("VOYAGE_API_KEY", raising=False)
    mgr = CorpusManager(memory_store, EmbeddingClient(MODEL))
    assert await mgr.find_similar("anything") == []


@pytest.mark.asyncio
async def test_find_similar_index_failure_falls_back(sqlite_store, fake_provider):
    mgr = CorpusManager(sqlite_store, EmbeddingClient(MODEL))
    await mgr.load_corpus(["hello world", "goodbye moon"], "s")
    with patch.object(sqlite_store, "search_index", side_effect=RuntimeError("index down")):
        results = await mgr.find_similar("hello world", 2, "s")
    assert results
    assert results[0].chunk == "hello world"


# ------------------------------------------------------------------
# clear_corpus
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_clear_corpus_by_source_empties_search(manager):
    await manager.load_corpus(["A quick brown fox", "A slow red fox"], "animals")
    await manager.load_corpus(["a red fox den"], "places")
    assert manager.clear_corpus("animals") == 2
    assert await manager.find_similar("fox", source="animals") == []
    assert manager.get_corpus_stats().sources == ["places"]


@pytest.mark.asyncio
async def test_clear_corpus_all(manager):
    await manager.load_corpus(["one"], "a")
    await manager.load_corpus(["two"], "b")
    assert manager.clear_corpus() == 2
    assert manager.get_corpus_stats() == CorpusStats()


# ------------------------------------------------------------------
# stats
# ------------------------------------------------------------------


def test_stats_empty_corpus_zeroed(any_store):
    stats = CorpusManager(any_store, EmbeddingClient(MODEL)).get_corpus_stats()
    assert stats.total_chunks == 0
    assert stats.sources == []
    assert stats.average_chunk_length == 0.0


@pytest.mark.asyncio
async def test_stats_average_is_character_length(manager):
    await manager.load_corpus(["ab", "abcd efgh"], "s")
    stats = manager.get_corpus_stats("s")
    assert stats.average_chunk_length == pytest.approx((2 + 9) / 2)


@pytest.mark.asyncio
async def test_stats_idempotent(manager):
    await manager.load_corpus(["x y z"], "a")
    assert manager.get_corpus_stats() == manager.get_corpus_stats()


@pytest.mark.asyncio
async def test_source_stats_ordering(manager):
    await manager.load_corpus(["one"], "small")
    await manager.load_corpus(["one", "two", "three"], "big")
    await manager.load_corpus(["four"], "also-small")
    per_source = manager.get_source_stats()
    assert [s.source for s in per_source] == ["big", "also-small", "small"]
    assert per_source[0].total_chunks == 3
    assert per_source[0].last_updated is not None


# ------------------------------------------------------------------
# update_embedding
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_embedding_replaces_in_place(manager, vectorize):
    await manager.load_corpus(["first chunk", "second chunk"], "s")
    target = manager.store.fetch()[1]

    updated = await manager.update_embedding(target.id, "brand new words", "t")

    assert updated.content == "brand new words"
    assert updated.embedding == vectorize("brand new words")
    assert updated.source == "t"
    assert updated.chunk_index == 1
    results = await manager.find_similar("brand new words", 1, "t")
    assert results[0].chunk == "brand new words"


@pytest.mark.asyncio
async def test_update_embedding_keeps_source_when_omitted(manager):
    await manager.load_corpus(["old"], "s")
    record = manager.store.fetch()[0]
    updated = await manager.update_embedding(record.id, "new")
    assert updated.source == "s"


@pytest.mark.asyncio
async def test_update_embedding_unknown_id(manager):
    with pytest.raises(RecordNotFoundError):
        await manager.update_embedding(424242, "text")


@pytest.mark.asyncio
async def test_update_embedding_provider_failure(memory_store, api_key, monkeypatch):
    mgr = CorpusManager(memory_store, EmbeddingClient(MODEL))
    monkeypatch.setattr(
        "ragcore.rag.embedder.litellm.aembedding", AsyncMock(side_effect=RuntimeError("503"))
    )
    with pytest.raises(EmbeddingError) as exc_info:
        await mgr.update_embedding(1, "text")
    assert isinstance(exc_info.value.__cause__, ProviderError)
