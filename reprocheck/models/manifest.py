"""Build manifest — the orchestrator's description of a finished build.

The manifest is the hand-off point between a build orchestrator and
reprocheck: the root project, each module with its ordered artifacts, and
the module-level ignore configuration. It is usually a JSON document::

    {
      "root": {"group_id": "org.example", "artifact_id": "demo", "version": "1.0"},
      "output_timestamp": "2024-01-01T00:00:00Z",
      "modules": [
        {
          "project": {"group_id": "org.example", "artifact_id": "demo", "version": "1.0"},
          "descriptor_file": "pom.xml",
          "main": {"group_id": "org.example", "artifact_id": "demo",
                   "base_version": "1.0", "file": "target/demo-1.0.jar"}
        }
      ]
    }
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from reprocheck.models.artifacts import ArtifactRef, ModuleOutputSet, ProjectInfo
from reprocheck.models.config import IgnoreRules


class ModuleDeclaration(BaseModel):
    """One module as declared by the orchestrator."""

    model_config = ConfigDict(frozen=True)

    project: ProjectInfo
    descriptor_file: Path | None = None
    main: ArtifactRef | None = None
    attached: list[ArtifactRef] = []
    ignore: list[str] | None = None
    ignore_javadoc: bool | None = None
    skip_install: bool = False
    skip_deploy: bool = False

    def output_set(self) -> ModuleOutputSet:
        rules = None
        if self.ignore is not None or self.ignore_javadoc is not None:
            rules = IgnoreRules(
                patterns=self.ignore or [],
                ignore_javadoc=True if self.ignore_javadoc is None else self.ignore_javadoc,
            )
        return ModuleOutputSet.from_outputs(
            self.project,
            self.descriptor_file,
            main=self.main,
            attached=self.attached,
            ignore_rules=rules,
            skip_install=self.skip_install,
            skip_deploy=self.skip_deploy,
        )


class BuildManifest(BaseModel):
    """Root project plus the reactor's modules in build order."""

    model_config = ConfigDict(frozen=True)

    root: ProjectInfo
    modules: list[ModuleDeclaration]
    output_timestamp: str | None = None
    build_tool_version: str = ""

    @property
    def is_mono(self) -> bool:
        """Single-module builds use ``outputs.<n>`` prefixes and no aggregate."""
        return len(self.modules) == 1

    def output_sets(self) -> list[ModuleOutputSet]:
        return [m.output_set() for m in self.modules]

    @classmethod
    def load(cls, path: Path) -> BuildManifest:
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
