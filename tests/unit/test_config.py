"""Tests for the ragcore config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from ragcore.config import (
    ConfigError,
    RagCoreConfig,
    build_manager,
    load_config,
    open_store,
)
from ragcore.db.memory import MemoryCorpusStore
from ragcore.db.repository import SqliteCorpusStore
from ragcore.errors import ConfigurationError


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("RAGCORE_EMBEDDING_MODEL", "RAGCORE_BACKEND", "RAGCORE_DB_PATH"):
        monkeypatch.delenv(var, raising=False)


def _load(tmp_path: Path, global_path: Path | None = None) -> RagCoreConfig:
    return load_config(
        project_dir=tmp_path,
        global_config_path=global_path or tmp_path / "nonexistent" / "config.yaml",
    )


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    cfg = _load(tmp_path)
    assert cfg.embedding.model == "voyage/voyage-2"
    assert cfg.store.backend == "sqlite"
    assert cfg.store.path == ".ragcore.db"
    assert cfg.retrieval.top_k == 3
    assert cfg.retrieval.min_similarity == pytest.approx(0.1)
    assert cfg.chunker.max_tokens == 500


def test_project_config_overrides_global(tmp_path: Path) -> None:
    global_path = tmp_path / "global.yaml"
    _write_yaml(global_path, {"embedding": {"model": "openai/text-embedding-3-small"}, "chunker": {"max_tokens": 200}})
    _write_yaml(tmp_path / "ragcore.yaml", {"chunker": {"max_tokens": 300}})

    cfg = _load(tmp_path, global_path)

    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.chunker.max_tokens == 300


def test_env_overrides_files(tmp_path: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "ragcore.yaml", {"store": {"backend": "sqlite", "path": "a.db"}})
    monkeypatch.setenv("RAGCORE_BACKEND", "MEMORY")
    monkeypatch.setenv("RAGCORE_DB_PATH", "b.db")
    monkeypatch.setenv("RAGCORE_EMBEDDING_MODEL", "cohere/embed-english-v3.0")

    cfg = _load(tmp_path)

    assert cfg.store.backend == "memory"
    assert cfg.store.path == "b.db"
    assert cfg.embedding.model == "cohere/embed-english-v3.0"


def test_global_config_api_key_rejected(tmp_path: Path) -> None:
    global_path = tmp_path / "global.yaml"
    _write_yaml(global_path, {"embedding": {"api_key": "sk-secret"}})
    with pytest.raises(ConfigError, match="forbidden key 'embedding.api_key'"):
        _load(tmp_path, global_path)


def test_max_tokens_key_not_mistaken_for_secret(tmp_path: Path) -> None:
    global_path = tmp_path / "global.yaml"
    _write_yaml(global_path, {"chunker": {"max_tokens": 128}})
    assert _load(tmp_path, global_path).chunker.max_tokens == 128


def test_unknown_section_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "ragcore.yaml", {"generation": {"model": "x"}})
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        _load(tmp_path)
    assert any("Unknown config key 'generation'" in str(x.message) for x in w)


def test_invalid_backend_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "ragcore.yaml", {"store": {"backend": "postgres"}})
    with pytest.raises(ConfigError, match="store.backend"):
        _load(tmp_path)


@pytest.mark.parametrize("section,data", [
    ("chunker", {"max_tokens": 0}),
    ("retrieval", {"top_k": 0}),
    ("retrieval", {"top_k": "many"}),
])
def test_invalid_values_rejected(tmp_path: Path, section, data) -> None:
    _write_yaml(tmp_path / "ragcore.yaml", {section: data})
    with pytest.raises(ConfigError):
        _load(tmp_path)


def test_config_error_is_configuration_error() -> None:
    assert issubclass(ConfigError, ConfigurationError)
    assert issubclass(ConfigError, ValueError)


def test_empty_yaml_file(tmp_path: Path) -> None:
    (tmp_path / "ragcore.yaml").write_text("", encoding="utf-8")
    assert _load(tmp_path) == RagCoreConfig()


def test_open_store_memory() -> None:
    cfg = RagCoreConfig()
    cfg.store.backend = "memory"
    store, conn = open_store(cfg)
    assert isinstance(store, MemoryCorpusStore)
    assert conn is None


def test_open_store_sqlite(tmp_path: Path) -> None:
    cfg = RagCoreConfig()
    cfg.store.path = str(tmp_path / "corpus.db")
    store, conn = open_store(cfg)
    try:
        assert isinstance(store, SqliteCorpusStore)
        assert (tmp_path / "corpus.db").exists()
    finally:
        conn.close()


def test_build_manager_uses_config() -> None:
    cfg = RagCoreConfig()
    cfg.chunker.max_tokens = 42
    cfg.retrieval.min_similarity = 0.5
    cfg.embedding.model = "openai/text-embedding-3-small"
    manager = build_manager(cfg, MemoryCorpusStore())
    assert manager.chunker.max_tokens == 42
    assert manager.min_similarity == 0.5
    assert manager.embedder.model == "openai/text-embedding-3-small"
