"""Shared pytest fixtures."""

from __future__ import annotations

import zlib
from unittest.mock import AsyncMock, MagicMock

import pytest

from ragcore.db.connection import Database
from ragcore.db.memory import MemoryCorpusStore
from ragcore.db.repository import SqliteCorpusStore
from ragcore.db.schema import initialize

MODEL = "voyage/voyage-2"
DIMS = 16


def fake_vector(text: str, dims: int = DIMS) -> list[float]:
    """Deterministic bag-of-words vector: identical word sets embed identically."""
    vec = [0.0] * dims
    for word in text.lower().split():
        vec[zlib.crc32(word.encode()) % dims] += 1.0
    return vec


async def _fake_aembedding(model, input, **kwargs):
    response = MagicMock()
    response.data = [{"embedding": fake_vector(input[0])}]
    return response


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".ragcore.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def sqlite_store(tmp_db):
    return SqliteCorpusStore(tmp_db, MODEL)


@pytest.fixture
def memory_store():
    return MemoryCorpusStore()


@pytest.fixture(params=["sqlite", "memory"])
def any_store(request, tmp_db):
    """Run a test once against each backend."""
    if request.param == "sqlite":
        return SqliteCorpusStore(tmp_db, MODEL)
    return MemoryCorpusStore()


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("VOYAGE_API_KEY", "fake-key")


@pytest.fixture
def fake_provider(api_key, monkeypatch):
    """Patch litellm.aembedding with the deterministic bag-of-words embedder."""
    mock = AsyncMock(side_effect=_fake_aembedding)
    monkeypatch.setattr("ragcore.rag.embedder.litellm.aembedding", mock)
    return mock


@pytest.fixture
def vectorize():
    """The function the fake provider uses, for computing expected vectors."""
    return fake_vector
