"""ragcore search: rank stored chunks against a query."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from ragcore.cli.session import open_manager

console = Console()

_PREVIEW_CHARS = 120


def search_cmd(
    query: Annotated[str, typer.Argument(help="Query text.")],
    top_k: Annotated[
        int,
        typer.Option("--top-k", "-k", min=1, help="Maximum number of results."),
    ] = 3,
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Only search chunks from this source."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the corpus database."),
    ] = None,
) -> None:
    """Show the stored chunks most similar to QUERY."""
    with open_manager(db) as manager:
        results = asyncio.run(manager.find_similar(query, top_k=top_k, source=source))

    if not results:
        console.print("[dim]No matching chunks.[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Source")
    table.add_column("Chunk")
    for rank, result in enumerate(results, start=1):
        preview = result.chunk
        if len(preview) > _PREVIEW_CHARS:
            preview = preview[: _PREVIEW_CHARS - 1] + "…"
        table.add_row(str(rank), f"{result.score:.3f}", result.source, preview)
    console.print(table)
