"""ragcore configuration loader.

Priority (high → low):
  1. CLI flags              (handled at call site, not in this module)
  2. Environment variables  (RAGCORE_EMBEDDING_MODEL, RAGCORE_BACKEND, RAGCORE_DB_PATH)
  3. Per-project ragcore.yaml
  4. Global ~/.ragcore/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import sqlite3
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ragcore.db.base import CorpusStore
from ragcore.db.connection import Database
from ragcore.db.memory import MemoryCorpusStore
from ragcore.db.repository import SqliteCorpusStore
from ragcore.db.schema import initialize
from ragcore.errors import ConfigurationError, StoreError
from ragcore.ingest.chunker import DEFAULT_MAX_TOKENS, TextChunker
from ragcore.rag.embedder import DEFAULT_EMBEDDING_MODEL, EmbeddingClient
from ragcore.rag.manager import CorpusManager
from ragcore.rag.search import MIN_SIMILARITY

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".ragcore"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "ragcore.yaml"

# Matches api_key, api-key, api_secret, *_token, token, *_secret, secret,
# password, passwd, credential(s). Does NOT match max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["embedding", "store", "retrieval", "chunker"])
_BACKENDS: frozenset[str] = frozenset(["sqlite", "memory"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError, ConfigurationError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (ragcore.yaml: embedding:)."""

    model: str = DEFAULT_EMBEDDING_MODEL


@dataclass
class StoreCfg:
    """Corpus store configuration (ragcore.yaml: store:).

    Attributes:
        backend: 'sqlite' (persistent, indexed) or 'memory'.
        path: SQLite database file (sqlite backend only).
    """

    backend: str = "sqlite"
    path: str = ".ragcore.db"


@dataclass
class RetrievalCfg:
    """Retrieval configuration (ragcore.yaml: retrieval:)."""

    top_k: int = 3
    min_similarity: float = MIN_SIMILARITY


@dataclass
class ChunkerCfg:
    """Chunker configuration (ragcore.yaml: chunker:)."""

    max_tokens: int = DEFAULT_MAX_TOKENS


@dataclass
class RagCoreConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    store: StoreCfg = field(default_factory=StoreCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    chunker: ChunkerCfg = field(default_factory=ChunkerCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}', ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: RagCoreConfig) -> None:
    if cfg.store.backend not in _BACKENDS:
        raise ConfigError(
            f"store.backend must be one of {sorted(_BACKENDS)}, got '{cfg.store.backend}'"
        )
    if cfg.chunker.max_tokens < 1:
        raise ConfigError(f"chunker.max_tokens must be >= 1, got {cfg.chunker.max_tokens}")
    if cfg.retrieval.top_k < 1:
        raise ConfigError(f"retrieval.top_k must be >= 1, got {cfg.retrieval.top_k}")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> RagCoreConfig:
    """Build a *RagCoreConfig* from a merged raw YAML dict."""
    cfg = RagCoreConfig()

    try:
        if "embedding" in data:
            e = data["embedding"] or {}
            cfg.embedding = EmbeddingCfg(model=str(e.get("model", cfg.embedding.model)))

        if "store" in data:
            s = data["store"] or {}
            cfg.store = StoreCfg(
                backend=str(s.get("backend", cfg.store.backend)).lower(),
                path=str(s.get("path", cfg.store.path)),
            )

        if "retrieval" in data:
            r = data["retrieval"] or {}
            cfg.retrieval = RetrievalCfg(
                top_k=int(r.get("top_k", cfg.retrieval.top_k)),
                min_similarity=float(r.get("min_similarity", cfg.retrieval.min_similarity)),
            )

        if "chunker" in data:
            c = data["chunker"] or {}
            cfg.chunker = ChunkerCfg(max_tokens=int(c.get("max_tokens", cfg.chunker.max_tokens)))
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: RagCoreConfig) -> RagCoreConfig:
    """Apply RAGCORE_* environment variable overrides."""
    if model := os.environ.get("RAGCORE_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if backend := os.environ.get("RAGCORE_BACKEND"):
        cfg.store.backend = backend.lower()
    if path := os.environ.get("RAGCORE_DB_PATH"):
        cfg.store.path = path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RagCoreConfig:
    """Load and return a merged *RagCoreConfig*.

    Applies layers in order: global → per-project → env vars.

    Args:
        project_dir: Directory to search for *ragcore.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields or a value
            is invalid.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def open_store(cfg: RagCoreConfig) -> tuple[CorpusStore, sqlite3.Connection | None]:
    """Build the configured store. Returns (store, connection-or-None).

    The caller owns the returned connection and must close it.
    """
    if cfg.store.backend == "memory":
        return MemoryCorpusStore(), None
    conn = Database(cfg.store.path).connect()
    try:
        initialize(conn)
    except StoreError:
        conn.close()
        raise
    return SqliteCorpusStore(conn, cfg.embedding.model), conn


def build_manager(cfg: RagCoreConfig, store: CorpusStore) -> CorpusManager:
    """Wire a CorpusManager for *store* from *cfg*."""
    return CorpusManager(
        store,
        EmbeddingClient(cfg.embedding.model),
        chunker=TextChunker(cfg.chunker.max_tokens),
        min_similarity=cfg.retrieval.min_similarity,
    )
