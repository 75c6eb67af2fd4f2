"""reprocheck data models — all Pydantic v2, all frozen (immutable)."""

from reprocheck.models.artifacts import ArtifactRef, ModuleOutputSet, ProjectInfo
from reprocheck.models.config import IgnoreRules, VerifyOptions
from reprocheck.models.description import BuildDescription, OutputDescription, OutputState
from reprocheck.models.environment import BuildEnvironment, SniffResult
from reprocheck.models.manifest import BuildManifest, ModuleDeclaration
from reprocheck.models.records import (
    ArtifactIndex,
    IndexedArtifact,
    RecordEntry,
    ReferenceBuild,
)
from reprocheck.models.reports import (
    ArtifactComparison,
    ComparisonOutcome,
    ComparisonReport,
    VerificationResult,
)

__all__ = [
    # artifacts
    "ArtifactRef",
    "ModuleOutputSet",
    "ProjectInfo",
    # config
    "IgnoreRules",
    "VerifyOptions",
    # description
    "BuildDescription",
    "OutputDescription",
    "OutputState",
    # environment
    "BuildEnvironment",
    "SniffResult",
    # manifest
    "BuildManifest",
    "ModuleDeclaration",
    # records
    "ArtifactIndex",
    "IndexedArtifact",
    "RecordEntry",
    "ReferenceBuild",
    # reports
    "ArtifactComparison",
    "ComparisonOutcome",
    "ComparisonReport",
    "VerificationResult",
]
