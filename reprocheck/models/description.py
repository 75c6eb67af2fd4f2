"""Build output description models — what ``reprocheck describe`` shows.

A description lists every declared output of every module without
writing a record, so a maintainer can see up front which outputs will be
skipped, ignored or renamed on their way to the repository.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from reprocheck.models.artifacts import ArtifactRef


class OutputState(str, Enum):
    """Whether an output takes part in the build record."""

    RECORDED = ""
    NOT_DEPLOYED = "not-deployed"
    IGNORED = "RB-ignored"


class OutputDescription(BaseModel):
    """One declared output of one module.

    ``repository_filename`` is ``None`` when the local file already
    carries its canonical repository name. ``sha512`` is only computed
    for recorded outputs.
    """

    model_config = ConfigDict(frozen=True)

    artifact: ArtifactRef
    state: OutputState = OutputState.RECORDED
    build_path: str
    repository_filename: str | None = None
    size: int | None = None
    sha512: str | None = None

    @property
    def label(self) -> str:
        """``artifactId[:classifier][:extension]``, extension omitted for jars."""
        label = self.artifact.artifact_id
        if self.artifact.classifier:
            label += f":{self.artifact.classifier}"
        if self.artifact.extension != "jar":
            label += f":{self.artifact.extension}"
        return label


class BuildDescription(BaseModel):
    """Outputs of a whole build plus groupId statistics."""

    model_config = ConfigDict(frozen=True)

    effective_timestamp: str  # ISO 8601 instant, or "disabled"
    group_ids: list[tuple[str, int]] = []  # most artifactIds first
    shared_artifact_ids: dict[str, list[str]] = {}  # artifactId -> groupIds
    outputs: list[OutputDescription] = []

    def in_state(self, state: OutputState) -> list[OutputDescription]:
        return [o for o in self.outputs if o.state == state]
