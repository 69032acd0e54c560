"""ragcore ingest: chunk, embed and store text files.

Usage:
  ragcore ingest notes.txt guide.md --source handbook
  ragcore ingest transcript.txt --db corpus.db
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from ragcore.cli.errors import (
    err_config,
    err_file_not_found,
    err_file_not_text,
    err_nothing_stored,
    err_store,
)
from ragcore.cli.session import open_manager
from ragcore.db.models import DEFAULT_SOURCE
from ragcore.errors import ConfigurationError, EmbeddingError, StoreError

console = Console()


def ingest_cmd(
    files: Annotated[
        list[Path],
        typer.Argument(help="UTF-8 text files to ingest."),
    ],
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Source label (defaults to 'unknown')."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the corpus database (created if missing)."),
    ] = None,
) -> None:
    """Chunk, embed and store one or more text files."""
    for path in files:
        if not path.is_file():
            console.print(err_file_not_found(str(path)))
            raise typer.Exit(1)

    texts = []
    for path in files:
        try:
            texts.append(path.read_text(encoding="utf-8"))
        except UnicodeDecodeError:
            console.print(err_file_not_text(str(path)))
            raise typer.Exit(1)

    with open_manager(db, must_exist=False) as manager:
        try:
            stored = asyncio.run(manager.load_corpus(texts, source))
        except ConfigurationError as exc:
            console.print(err_config(str(exc)))
            raise typer.Exit(1)
        except EmbeddingError as exc:
            console.print(err_nothing_stored(str(exc)))
            raise typer.Exit(1)
        except StoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)

        label = DEFAULT_SOURCE if source is None else source
        console.print(f"[green]✓[/] Stored {stored} chunks from {len(files)} file(s) as '{label}'")
