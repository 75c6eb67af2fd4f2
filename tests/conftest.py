"""Shared test fixtures for reprocheck."""

from __future__ import annotations

import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from reprocheck.models.artifacts import ArtifactRef, ModuleOutputSet, ProjectInfo
from reprocheck.models.environment import BuildEnvironment

GROUP_ID = "org.example"
VERSION = "1.0"


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def environment() -> BuildEnvironment:
    """Provide a fixed local build environment (no ``java -version`` probe)."""
    return BuildEnvironment(
        java_version="17.0.2",
        java_vendor="Eclipse",
        os_name="Linux",
        os_arch="amd64",
        os_version="6.1.0",
        line_separator="\n",
        build_tool_version="3.9.6",
    )


# ---------------------------------------------------------------------------
# File factories
# ---------------------------------------------------------------------------


@pytest.fixture
def write_file(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: write bytes to a path under the temp directory."""

    def _factory(relative: str, content: bytes = b"content") -> Path:
        path = tmp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _factory


@pytest.fixture
def make_jar(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: build a jar with a manifest and optional pom.properties."""

    def _factory(
        relative: str,
        *,
        manifest: str | None = "Manifest-Version: 1.0\r\nBuild-Jdk-Spec: 17\r\n\r\n",
        group_id: str = GROUP_ID,
        artifact_id: str = "demo",
        pom_properties: str | None = None,
        extra: dict[str, bytes] | None = None,
    ) -> Path:
        path = tmp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as jar:
            if manifest is not None:
                jar.writestr("META-INF/MANIFEST.MF", manifest)
            if pom_properties is not None:
                jar.writestr(
                    f"META-INF/maven/{group_id}/{artifact_id}/pom.properties",
                    pom_properties,
                )
            for name, data in (extra or {}).items():
                jar.writestr(name, data)
        return path

    return _factory


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_project(tmp_dir: Path) -> Callable[..., ProjectInfo]:
    """Factory fixture: build a ProjectInfo rooted in the temp directory."""

    def _factory(artifact_id: str = "demo", **overrides: Any) -> ProjectInfo:
        defaults: dict[str, Any] = {
            "group_id": GROUP_ID,
            "artifact_id": artifact_id,
            "version": VERSION,
            "scm_connection": "scm:git:https://example.org/demo.git",
            "scm_tag": "v1.0",
            "basedir": tmp_dir,
        }
        defaults.update(overrides)
        return ProjectInfo(**defaults)

    return _factory


@pytest.fixture
def make_artifact() -> Callable[..., ArtifactRef]:
    """Factory fixture: build an ArtifactRef with sensible defaults."""

    def _factory(
        artifact_id: str = "demo",
        *,
        classifier: str = "",
        extension: str = "jar",
        file: Path | None = None,
        **overrides: Any,
    ) -> ArtifactRef:
        defaults: dict[str, Any] = {
            "group_id": GROUP_ID,
            "artifact_id": artifact_id,
            "base_version": VERSION,
            "classifier": classifier,
            "extension": extension,
            "file": file,
        }
        defaults.update(overrides)
        return ArtifactRef(**defaults)

    return _factory


@pytest.fixture
def make_module(
    tmp_dir: Path,
    write_file: Callable[..., Path],
    make_project: Callable[..., ProjectInfo],
    make_artifact: Callable[..., ArtifactRef],
) -> Callable[..., ModuleOutputSet]:
    """Factory fixture: a module with a pom and a jar written to disk.

    ``attached`` maps ``(classifier, extension)`` to file content.
    """

    def _factory(
        artifact_id: str = "demo",
        *,
        jar: bytes | None = b"jar-bytes",
        pom: bytes = b"<project/>",
        attached: dict[tuple[str, str], bytes] | None = None,
        **overrides: Any,
    ) -> ModuleOutputSet:
        project = make_project(artifact_id)
        pom_file = write_file(f"{artifact_id}/pom.xml", pom)
        main = None
        if jar is not None:
            main = make_artifact(
                artifact_id, file=write_file(f"{artifact_id}/target/{artifact_id}.jar", jar)
            )
        extra = []
        for (classifier, extension), content in (attached or {}).items():
            name = f"{artifact_id}/target/{artifact_id}-{classifier or 'x'}.{extension}"
            extra.append(
                make_artifact(
                    artifact_id,
                    classifier=classifier,
                    extension=extension,
                    file=write_file(name, content),
                )
            )
        return ModuleOutputSet.from_outputs(
            project, pom_file, main=main, attached=extra, **overrides
        )

    return _factory
