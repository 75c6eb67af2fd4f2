"""``reprocheck sniff ARCHIVE`` — guess the JDK and OS that built an archive."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from reprocheck.cli.commands.common import console
from reprocheck.core.sniffer import sniff


def sniff_cmd(
    archive: Path = typer.Argument(
        ...,
        help="Archive (jar, war, ear, rar) to inspect.",
    ),
    group_id: str = typer.Option(
        ...,
        "--group",
        "-g",
        help="groupId of the archive, used to locate pom.properties.",
    ),
    artifact_id: str = typer.Option(
        ...,
        "--artifact",
        "-a",
        help="artifactId of the archive, used to locate pom.properties.",
    ),
) -> None:
    """Show the java.version and os.name inferred from archive metadata."""
    if not archive.is_file():
        console.print(f"[bold red]Archive not found:[/bold red] {archive}")
        raise typer.Exit(code=1)

    result = sniff(archive, group_id, artifact_id)
    if result is None:
        console.print(f"[yellow]No build environment hints in[/yellow] {archive}")
        raise typer.Exit(code=1)

    table = Table(title=f"Build environment of {archive.name}")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("java.version", result.java_version or "[dim]unknown[/dim]")
    table.add_row("os.name", result.os_name or "[dim]unknown[/dim]")
    console.print(table)
