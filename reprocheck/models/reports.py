"""Comparison report models — output of the comparator."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from reprocheck.models.artifacts import ArtifactRef
from reprocheck.models.records import ReferenceBuild


class ComparisonOutcome(str, Enum):
    """Classification of one local artifact against the reference build."""

    OK = "ok"
    SIZE_MISMATCH = "size"
    HASH_MISMATCH = "sha512"
    MISSING_FROM_REFERENCE = "missing-from-reference"
    IGNORED = "ignored"

    @property
    def is_mismatch(self) -> bool:
        return self in (ComparisonOutcome.SIZE_MISMATCH, ComparisonOutcome.HASH_MISMATCH)


class ArtifactComparison(BaseModel):
    """Per-artifact comparison result."""

    model_config = ConfigDict(frozen=True)

    artifact: ArtifactRef
    filename: str
    outcome: ComparisonOutcome
    remediation: str | None = None  # ready-to-run diff command for mismatches


class ComparisonReport(BaseModel):
    """Aggregate result of comparing a local build against its reference.

    ``unmatched_reference`` counts reference entries that no local artifact
    claimed; together with ``missing-from-reference`` outcomes it forms the
    ``missing`` bucket.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    comparisons: list[ArtifactComparison] = []
    unmatched_reference: int = 0
    reference_java_version: str | None = None
    reference_os_name: str | None = None
    local_java_version: str | None = None
    local_os_name: str | None = None

    def _filenames(self, *outcomes: ComparisonOutcome) -> list[str]:
        return [c.filename for c in self.comparisons if c.outcome in outcomes]

    @property
    def ok_files(self) -> list[str]:
        return self._filenames(ComparisonOutcome.OK)

    @property
    def ko_files(self) -> list[str]:
        return [c.filename for c in self.comparisons if c.outcome.is_mismatch]

    @property
    def ignored_files(self) -> list[str]:
        return self._filenames(ComparisonOutcome.IGNORED)

    @property
    def missing_files(self) -> list[str]:
        return self._filenames(ComparisonOutcome.MISSING_FROM_REFERENCE)

    @property
    def ok(self) -> int:
        return len(self.ok_files)

    @property
    def ko(self) -> int:
        return len(self.ko_files)

    @property
    def ignored(self) -> int:
        return len(self.ignored_files)

    @property
    def missing(self) -> int:
        return self.unmatched_reference + len(self.missing_files)

    @property
    def remediations(self) -> list[str]:
        return [c.remediation for c in self.comparisons if c.remediation]

    @property
    def differs(self) -> bool:
        """Whether the build failed to reproduce; ignored files never count."""
        return self.ko + self.missing > 0

    @property
    def drift(self) -> list[str]:
        """Reference vs. local environment differences, when both are known."""
        notes: list[str] = []
        if (
            self.reference_java_version is not None
            and self.reference_java_version != self.local_java_version
        ):
            notes.append(
                f"java.version: reference={self.reference_java_version!r}, "
                f"local={self.local_java_version!r}"
            )
        if (
            self.reference_os_name is not None
            and self.reference_os_name != self.local_os_name
        ):
            notes.append(
                f"os.name: reference={self.reference_os_name!r}, "
                f"local={self.local_os_name!r}"
            )
        return notes


class VerificationResult(BaseModel):
    """Everything one record-and-compare pass produced."""

    model_config = ConfigDict(frozen=True)

    record_path: Path
    report_path: Path
    reference: ReferenceBuild
    report: ComparisonReport
