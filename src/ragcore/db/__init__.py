"""ragcore corpus store layer."""

from ragcore.db.base import CorpusStore
from ragcore.db.connection import Database
from ragcore.db.memory import MemoryCorpusStore
from ragcore.db.migrations import MIGRATIONS, run_migrations
from ragcore.db.models import DEFAULT_SOURCE, Chunk, CorpusRecord
from ragcore.db.repository import SqliteCorpusStore
from ragcore.db.schema import initialize
from ragcore.db.vectors import ensure_vec_table, model_to_slug, vec_table_name

__all__ = [
    "Chunk",
    "CorpusRecord",
    "CorpusStore",
    "DEFAULT_SOURCE",
    "Database",
    "MemoryCorpusStore",
    "SqliteCorpusStore",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ensure_vec_table",
    "model_to_slug",
    "vec_table_name",
]
