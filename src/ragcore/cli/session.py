"""Shared CLI plumbing: load config, open the SQLite store, build the manager."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console

from ragcore.cli.errors import err_config, err_no_db, err_store
from ragcore.config import ConfigError, build_manager, load_config, open_store
from ragcore.errors import StoreError
from ragcore.rag.manager import CorpusManager

console = Console()


@contextmanager
def open_manager(db: Path | None, *, must_exist: bool = True) -> Iterator[CorpusManager]:
    """Yield a CorpusManager over the SQLite corpus at *db* (or the configured path).

    The CLI always uses the persistent backend; an in-memory corpus would not
    outlive the command.
    """
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    cfg.store.backend = "sqlite"
    if db is not None:
        cfg.store.path = str(db)

    if must_exist and not Path(cfg.store.path).exists():
        console.print(err_no_db(cfg.store.path))
        raise typer.Exit(1)

    try:
        store, conn = open_store(cfg)
    except StoreError as exc:
        console.print(err_store(str(exc)))
        raise typer.Exit(1)
    try:
        yield build_manager(cfg, store)
    finally:
        if conn is not None:
            conn.close()
