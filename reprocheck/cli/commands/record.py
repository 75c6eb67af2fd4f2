"""``reprocheck record MANIFEST`` — write the build record.

Fingerprints every output declared in the manifest and writes the
``.buildinfo`` record (an aggregate one for multi-module builds) without
contacting any reference repository.
"""

from __future__ import annotations

from pathlib import Path

import typer

from reprocheck.cli.commands.common import FATAL_ERRORS, console, fail, load_manifest
from reprocheck.config import settings
from reprocheck.core.environment import detect_environment
from reprocheck.core.verifier import ReproducibilityVerifier
from reprocheck.models.config import IgnoreRules


def record_cmd(
    manifest_path: Path = typer.Argument(
        ...,
        help="JSON build manifest describing the finished build.",
    ),
    reproducible: bool = typer.Option(
        None,
        "--reproducible/--full",
        help="Record only the major JDK version and OS family (default from settings).",
    ),
    ignore: list[str] = typer.Option(
        None,
        "--ignore",
        "-i",
        help="Glob on <groupId>/<filename> of outputs to ignore (repeatable).",
    ),
) -> None:
    """Record size and SHA-512 of every build output.

    Paths inside the manifest are resolved from the current directory.
    """
    manifest = load_manifest(manifest_path)

    overrides: dict[str, object] = {}
    if reproducible is not None:
        overrides["reproducible"] = reproducible
    if ignore:
        overrides["ignore_rules"] = IgnoreRules(
            patterns=[*settings.ignore, *ignore],
            ignore_javadoc=settings.ignore_javadoc,
        )
    options = settings.verify_options(**overrides)

    try:
        environment = detect_environment(build_tool_version=manifest.build_tool_version)
        verifier = ReproducibilityVerifier(manifest, options, environment=environment)
        path, index = verifier.record()
    except FATAL_ERRORS as exc:
        raise fail(exc) from exc

    console.print(
        f"[bold green]Recorded[/bold green] {len(index.recorded())} output(s), "
        f"{len(index.ignored())} ignored"
    )
    console.print(f"  [bold]Record:[/bold] {path}")
