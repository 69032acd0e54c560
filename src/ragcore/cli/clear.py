"""ragcore clear: delete stored chunks by source, or the whole corpus.

Usage:
  ragcore clear --source handbook
  ragcore clear --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from ragcore.cli.errors import err_source_not_found, err_store
from ragcore.cli.session import open_manager
from ragcore.errors import StoreError

console = Console()


def clear_cmd(
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Only delete chunks from this source."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the corpus database."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete stored chunks for one source, or everything."""
    with open_manager(db) as manager:
        count = manager.get_corpus_stats(source).total_chunks
        if count == 0:
            if source:
                console.print(err_source_not_found(source))
            else:
                console.print("[dim]Corpus is already empty.[/]")
            raise typer.Exit(0)

        target = f"source [bold]{source}[/]" if source else "[bold]the entire corpus[/]"
        console.print(f"\nClear {target}: {count} chunks")

        if not yes and not typer.confirm("Confirm removal?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

        try:
            removed = manager.clear_corpus(source)
        except StoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)

    console.print(f"[green]✓[/] Removed {removed} chunks")
