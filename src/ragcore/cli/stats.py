"""ragcore stats: corpus overview and per-source breakdown."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ragcore.cli.session import open_manager
from ragcore.rag.manager import CorpusManager

console = Console()


def stats_cmd(
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Limit stats to one source."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the corpus database."),
    ] = None,
) -> None:
    """Show chunk counts, sources and average chunk length."""
    with open_manager(db) as manager:
        _show_corpus_panel(manager, source)
        if source is None:
            _show_sources_table(manager)


def _show_corpus_panel(manager: CorpusManager, source: str | None) -> None:
    stats = manager.get_corpus_stats(source)
    if stats.total_chunks == 0:
        body = "[dim]No chunks stored yet.[/]"
    else:
        body = (
            f"Chunks:  [bold]{stats.total_chunks:,}[/]  |  "
            f"Sources: [bold]{len(stats.sources)}[/]  |  "
            f"Avg length: [bold]{stats.average_chunk_length:.0f}[/] chars"
        )
    title = f"[bold]Corpus[/] [dim]({source})[/]" if source else "[bold]Corpus[/]"
    console.print(Panel(body, title=title, expand=False))


def _show_sources_table(manager: CorpusManager) -> None:
    per_source = manager.get_source_stats()
    if not per_source:
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("Source")
    table.add_column("Chunks", justify="right")
    table.add_column("Avg length", justify="right")
    table.add_column("Last updated", style="dim")
    for s in per_source:
        table.add_row(
            s.source,
            f"{s.total_chunks:,}",
            f"{s.average_chunk_length:.0f}",
            (s.last_updated or "")[:16],
        )
    console.print(Panel(table, title="[bold]Sources[/]", expand=False))
