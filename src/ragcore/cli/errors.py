"""Rich error messages for the ragcore CLI: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it
"""

from __future__ import annotations


def err_config(message: str) -> str:
    """Configuration failure (missing key, invalid ragcore.yaml)."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Check ragcore.yaml and your environment variables."
    )


def err_no_db(db_path: str = ".ragcore.db") -> str:
    """No corpus database at *db_path*."""
    return (
        f"[red]Error:[/] No corpus database found at '{db_path}'.\n"
        "  Run:  ragcore ingest <file> --db " + db_path
    )


def err_file_not_found(path: str) -> str:
    return (
        f"[red]Error:[/] File not found: '{path}'\n"
        "  Pass paths to existing UTF-8 text files."
    )


def err_file_not_text(path: str) -> str:
    """File exists but is not UTF-8 text."""
    return (
        f"[red]Error:[/] '{path}' is not valid UTF-8 text.\n"
        "  Convert it to UTF-8, then run:  ragcore ingest " + path
    )


def err_nothing_stored(message: str) -> str:
    """Ingest made no progress: every chunk failed to embed."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Check provider credentials and quota, then re-run ingest."
    )


def err_store(message: str) -> str:
    return (
        f"[red]Error:[/] Corpus store failure: {message}\n"
        "  If the database was created with a different embedding model, "
        "clear it first:  ragcore clear --yes"
    )


def err_source_not_found(source: str) -> str:
    """Source not present in the corpus."""
    return (
        f"[yellow]Source not found:[/] '{source}' has no stored chunks.\n"
        "  Run:  ragcore stats  to see all sources."
    )
