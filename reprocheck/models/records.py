"""Fingerprint record models.

A record is a line-oriented ``key=value`` document. Each recorded artifact
contributes one :class:`RecordEntry` under a unique prefix such as
``outputs.0.1`` (aggregate build) or ``outputs.1`` (single module).
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from reprocheck.models.artifacts import ArtifactRef
from reprocheck.models.environment import SniffResult

OUTPUTS_PREFIX = "outputs."
GROUP_ID_SUFFIX = ".groupId"
FILENAME_SUFFIX = ".filename"
LENGTH_SUFFIX = ".length"
SHA512_SUFFIX = ".checksums.sha512"
COORDINATES_SUFFIX = ".coordinates"

ENTRY_SUFFIXES = (GROUP_ID_SUFFIX, FILENAME_SUFFIX, LENGTH_SUFFIX, SHA512_SUFFIX)

RECORD_EXTENSION = "buildinfo"
REPORT_EXTENSION = "buildcompare"


class RecordEntry(BaseModel):
    """One fingerprinted artifact inside a record."""

    model_config = ConfigDict(frozen=True)

    prefix: str
    group_id: str
    filename: str
    length: int
    sha512: str

    def lines(self) -> list[str]:
        return [
            f"{self.prefix}{GROUP_ID_SUFFIX}={self.group_id}",
            f"{self.prefix}{FILENAME_SUFFIX}={self.filename}",
            f"{self.prefix}{LENGTH_SUFFIX}={self.length}",
            f"{self.prefix}{SHA512_SUFFIX}={self.sha512}",
        ]


class IndexedArtifact(BaseModel):
    """An artifact and the record prefix it was assigned.

    ``prefix`` is ``None`` for artifacts excluded by ignore rules.
    """

    model_config = ConfigDict(frozen=True)

    artifact: ArtifactRef
    prefix: str | None = None

    @property
    def is_ignored(self) -> bool:
        return self.prefix is None


class ArtifactIndex(BaseModel):
    """Ordered mapping from artifact identity to assigned record prefix."""

    model_config = ConfigDict(frozen=True)

    entries: list[IndexedArtifact] = []

    def recorded(self) -> list[IndexedArtifact]:
        return [e for e in self.entries if not e.is_ignored]

    def ignored(self) -> list[IndexedArtifact]:
        return [e for e in self.entries if e.is_ignored]

    def __len__(self) -> int:
        return len(self.entries)


class ReferenceBuild(BaseModel):
    """Outcome of reference resolution: where the reference record lives and
    what was learned while building it."""

    model_config = ConfigDict(frozen=True)

    record_path: Path
    reference_dir: Path
    synthesized: bool = True
    not_found: list[str] = []  # identities absent at the reference source
    reference_env: SniffResult | None = None
    local_env: SniffResult | None = None
