"""``reprocheck describe MANIFEST`` — list build outputs without recording."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from reprocheck.cli.commands.common import FATAL_ERRORS, console, fail, load_manifest
from reprocheck.config import settings
from reprocheck.core.describer import describe_build
from reprocheck.core.verifier import ReproducibilityVerifier
from reprocheck.models.description import OutputState
from reprocheck.models.environment import BuildEnvironment

_STATE_STYLES: dict[OutputState, str] = {
    OutputState.RECORDED: "",
    OutputState.NOT_DEPLOYED: "[yellow]not-deployed[/yellow]",
    OutputState.IGNORED: "[dim]RB-ignored[/dim]",
}


def describe_cmd(
    manifest_path: Path = typer.Argument(
        ...,
        help="JSON build manifest describing the finished build.",
    ),
) -> None:
    """Show each output's skip/ignore state, build path and repository name.

    The repository column is ``-`` when the local file already has its
    canonical name. Digests are SHA-512 and only shown for recorded outputs.
    """
    manifest = load_manifest(manifest_path)
    options = settings.verify_options()

    try:
        verifier = ReproducibilityVerifier(manifest, options, environment=BuildEnvironment())
        description = describe_build(verifier)
    except FATAL_ERRORS as exc:
        raise fail(exc) from exc

    console.print(f"[bold]Output timestamp:[/bold] {description.effective_timestamp}")
    for group_id, count in description.group_ids:
        plural = "s" if count > 1 else ""
        console.print(f"groupId: {escape(group_id)} ({count} artifactId{plural})")
    for artifact_id, group_ids in description.shared_artifact_ids.items():
        console.print(
            f"[yellow]artifactId: {escape(artifact_id)} defined for multiple groupIds:"
            f"[/yellow] {escape(', '.join(group_ids))}"
        )

    table = Table(title="Build output", show_header=True, header_style="bold")
    table.add_column("Skip/ignore")
    table.add_column("artifactId[:classifier][:extension]", style="cyan")
    table.add_column("Build path")
    table.add_column("Repository filename")
    table.add_column("Size", justify="right")
    table.add_column("SHA-512", style="dim", overflow="fold")
    for output in description.outputs:
        table.add_row(
            _STATE_STYLES[output.state],
            escape(output.label),
            escape(output.build_path),
            escape(output.repository_filename or "-"),
            "" if output.size is None else str(output.size),
            output.sha512 or "",
        )
    console.print(table)
