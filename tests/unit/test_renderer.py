"""Tests for the Rich result renderer."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from reprocheck.cli.renderer import ResultRenderer
from reprocheck.models.artifacts import ArtifactRef
from reprocheck.models.records import ReferenceBuild
from reprocheck.models.reports import (
    ArtifactComparison,
    ComparisonOutcome,
    ComparisonReport,
    VerificationResult,
)


def _result(*comparisons: ArtifactComparison) -> VerificationResult:
    return VerificationResult(
        record_path=Path("target/demo-1.0.buildinfo"),
        report_path=Path("target/demo-1.0.buildcompare"),
        reference=ReferenceBuild(
            record_path=Path("target/reference/demo-1.0.buildinfo"),
            reference_dir=Path("target/reference"),
        ),
        report=ComparisonReport(version="1.0", comparisons=list(comparisons)),
    )


def _output(result: VerificationResult) -> str:
    console = Console(record=True, width=200)
    ResultRenderer(console).print_result(result)
    return console.export_text()


class TestResultRenderer:
    def test_reproducible_build(self):
        artifact = ArtifactRef(group_id="org.example", artifact_id="demo", base_version="1.0")
        output = _output(
            _result(
                ArtifactComparison(
                    artifact=artifact, filename="demo-1.0.jar", outcome=ComparisonOutcome.OK
                )
            )
        )
        assert "demo-1.0.jar" in output
        assert "reproducible" in output

    def test_filenames_and_commands_are_not_markup(self):
        artifact = ArtifactRef(
            group_id="org.example", artifact_id="demo", base_version="1.0", classifier="[red]"
        )
        output = _output(
            _result(
                ArtifactComparison(
                    artifact=artifact,
                    filename="demo-1.0-[red].jar",
                    outcome=ComparisonOutcome.HASH_MISMATCH,
                    remediation="diffoscope ref/demo-1.0-[red].jar target/[bold]demo.jar",
                )
            )
        )
        assert "demo-1.0-[red].jar" in output
        assert "target/[bold]demo.jar" in output
        assert "DIFFERS" in output
