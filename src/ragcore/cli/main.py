"""ragcore CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from ragcore.cli.clear import clear_cmd
from ragcore.cli.ingest import ingest_cmd
from ragcore.cli.search import search_cmd
from ragcore.cli.stats import stats_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("ragcore")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ragcore {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="ragcore",
    help=(
        "ragcore: retrieval-augmented context engine.\n\n"
        "  ragcore ingest  Chunk, embed and store text files.\n"
        "  ragcore search  Find the passages most similar to a query."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show ragcore log output."),
    ] = False,
) -> None:
    """ragcore: retrieval-augmented context engine."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


app.command("ingest")(ingest_cmd)
app.command("search")(search_cmd)
app.command("stats")(stats_cmd)
app.command("clear")(clear_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed ragcore version."""
    typer.echo(f"ragcore {_version()}")


if __name__ == "__main__":
    app()
