"""Build output models: artifact coordinates, projects and module output sets.

These are handed to reprocheck by the build orchestrator. reprocheck only
reads them; the files they point at belong to the build.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from reprocheck.models.config import IgnoreRules

DESCRIPTOR_EXTENSION = "pom"
BUILD_DESCRIPTOR_CLASSIFIER = "build"
CONSUMER_DESCRIPTOR_CLASSIFIER = "consumer"


class ArtifactRef(BaseModel):
    """A single build output identified by its repository coordinates.

    Identity is group + artifact_id + classifier + extension + base_version.
    ``file`` is an attribute, not part of the identity: an artifact may be
    declared without ever being materialized on disk.
    """

    model_config = ConfigDict(frozen=True)

    group_id: str
    artifact_id: str
    base_version: str
    classifier: str = ""
    extension: str = "jar"
    file: Path | None = None

    @property
    def identity(self) -> str:
        """``group:artifact:extension[:classifier]:version``."""
        parts = [self.group_id, self.artifact_id, self.extension]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.base_version)
        return ":".join(parts)

    @property
    def is_descriptor(self) -> bool:
        return self.extension == DESCRIPTOR_EXTENSION

    @property
    def is_snapshot(self) -> bool:
        return self.base_version.endswith("-SNAPSHOT")

    def __str__(self) -> str:
        return self.identity


class ProjectInfo(BaseModel):
    """Identity and source information of one module (or the build root)."""

    model_config = ConfigDict(frozen=True)

    group_id: str
    artifact_id: str
    version: str
    name: str = ""
    scm_connection: str | None = None
    scm_tag: str | None = None
    minimum_build_tool_version: str | None = None
    basedir: Path = Path(".")
    build_directory: Path | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.artifact_id

    @property
    def coordinates(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def is_snapshot(self) -> bool:
        return self.version.endswith("-SNAPSHOT")

    @property
    def target_dir(self) -> Path:
        """Directory receiving generated records (``<basedir>/target`` by default)."""
        return self.build_directory or self.basedir / "target"

    def record_path(self, extension: str) -> Path:
        """``<target>/<artifactId>-<version>.<extension>``."""
        return self.target_dir / f"{self.artifact_id}-{self.version}.{extension}"


class ModuleOutputSet(BaseModel):
    """A module's declared artifacts, in emission order.

    Order is fixed: descriptor, build descriptor (only when a consumer
    descriptor replaced the primary one), main artifact, attached artifacts.
    """

    model_config = ConfigDict(frozen=True)

    project: ProjectInfo
    descriptor: ArtifactRef
    build_descriptor: ArtifactRef | None = None
    main: ArtifactRef | None = None
    attached: list[ArtifactRef] = []
    ignore_rules: IgnoreRules | None = None
    skip_install: bool = False
    skip_deploy: bool = False

    @property
    def skips_publication(self) -> bool:
        """Whether the module opts out of install and/or deploy."""
        return self.skip_install or self.skip_deploy

    def artifacts(self) -> list[ArtifactRef]:
        ordered = [self.descriptor]
        if self.build_descriptor is not None:
            ordered.append(self.build_descriptor)
        if self.main is not None:
            ordered.append(self.main)
        ordered.extend(self.attached)
        return ordered

    @classmethod
    def from_outputs(
        cls,
        project: ProjectInfo,
        descriptor_file: Path | None,
        *,
        main: ArtifactRef | None = None,
        attached: Iterable[ArtifactRef] = (),
        ignore_rules: IgnoreRules | None = None,
        skip_install: bool = False,
        skip_deploy: bool = False,
    ) -> ModuleOutputSet:
        """Assemble an output set, detecting a transient consumer descriptor.

        When a ``consumer`` descriptor is attached it is published as the
        module descriptor, and the original descriptor file is recorded
        under the ``build`` classifier. The consumer attachment itself is
        not recorded a second time.
        """
        attached = list(attached)
        consumer = next(
            (
                a
                for a in attached
                if a.extension == DESCRIPTOR_EXTENSION
                and a.classifier == CONSUMER_DESCRIPTOR_CLASSIFIER
            ),
            None,
        )

        descriptor = ArtifactRef(
            group_id=project.group_id,
            artifact_id=project.artifact_id,
            base_version=project.version,
            extension=DESCRIPTOR_EXTENSION,
            file=consumer.file if consumer is not None else descriptor_file,
        )
        build_descriptor = None
        if consumer is not None:
            build_descriptor = descriptor.model_copy(
                update={
                    "classifier": BUILD_DESCRIPTOR_CLASSIFIER,
                    "file": descriptor_file,
                }
            )
            attached = [a for a in attached if a is not consumer]

        return cls(
            project=project,
            descriptor=descriptor,
            build_descriptor=build_descriptor,
            main=main,
            attached=attached,
            ignore_rules=ignore_rules,
            skip_install=skip_install,
            skip_deploy=skip_deploy,
        )
