"""Helpers shared by the ``reprocheck`` subcommands."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from reprocheck.core.comparator import ArtifactsDifferError, LookupInconsistencyError
from reprocheck.core.recorder import ConfigurationError
from reprocheck.core.sources import ReferenceTransportError
from reprocheck.models.manifest import BuildManifest

console = Console()

# Errors that end a run; each maps to exit code 1.
FATAL_ERRORS: tuple[type[BaseException], ...] = (
    ConfigurationError,
    ReferenceTransportError,
    LookupInconsistencyError,
    ArtifactsDifferError,
    OSError,
)


def load_manifest(path: Path) -> BuildManifest:
    """Load a JSON build manifest or exit with a readable error."""
    if not path.is_file():
        console.print(f"[bold red]Manifest not found:[/bold red] {path}")
        raise typer.Exit(code=1)
    try:
        return BuildManifest.load(path)
    except ValidationError as exc:
        console.print(f"[bold red]Invalid manifest:[/bold red] {path}")
        console.print(f"[dim]{escape(str(exc))}[/dim]")
        raise typer.Exit(code=1) from exc


def fail(exc: BaseException) -> typer.Exit:
    """Print *exc* in red and return the exit to raise."""
    console.print(f"[bold red]{type(exc).__name__}:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=1)
