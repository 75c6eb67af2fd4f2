"""``reprocheck compare MANIFEST`` — check a build against a reference repository.

Records the build, downloads the reference artifacts with identical
coordinates, and writes a ``.buildcompare`` report next to each record.
The exit code is 1 when outputs differ and failing is enabled.
"""

from __future__ import annotations

from pathlib import Path

import typer

from reprocheck.cli.commands.common import FATAL_ERRORS, console, fail, load_manifest
from reprocheck.cli.renderer import ResultRenderer
from reprocheck.config import settings
from reprocheck.core.environment import detect_environment
from reprocheck.core.sources import parse_reference_repo
from reprocheck.core.verifier import ReproducibilityVerifier


def compare_cmd(
    manifest_path: Path = typer.Argument(
        ...,
        help="JSON build manifest describing the finished build.",
    ),
    reference_repo: str = typer.Option(
        None,
        "--reference-repo",
        "-r",
        help="Reference repository: configured id, url, or id::url.",
    ),
    fail_on_difference: bool = typer.Option(
        None,
        "--fail/--no-fail",
        help="Exit with an error when outputs differ (default from settings).",
    ),
    aggregate_only: bool = typer.Option(
        None,
        "--aggregate-only/--per-module",
        help="Skip the early per-module checks of multi-module builds.",
    ),
) -> None:
    """Compare the build outputs with a reference build.

    Artifacts absent from the reference repository are reported as
    missing rather than aborting the run.
    """
    manifest = load_manifest(manifest_path)

    overrides: dict[str, object] = {}
    if fail_on_difference is not None:
        overrides["fail_on_difference"] = fail_on_difference
    if aggregate_only is not None:
        overrides["aggregate_only"] = aggregate_only
    options = settings.verify_options(**overrides)
    renderer = ResultRenderer(console=console)

    try:
        source = parse_reference_repo(
            reference_repo or settings.reference_repo,
            settings.repositories,
            cache_dir=settings.download_cache,
            timeout=settings.http_timeout_seconds,
        )
        environment = detect_environment(build_tool_version=manifest.build_tool_version)
        verifier = ReproducibilityVerifier(manifest, options, environment=environment)
        try:
            results = verifier.verify(source, enforce=False)
        finally:
            close = getattr(source, "close", None)
            if close is not None:
                close()

        for result in results:
            renderer.print_result(result)
        for result in results:
            verifier.enforce(result)
    except FATAL_ERRORS as exc:
        raise fail(exc) from exc
