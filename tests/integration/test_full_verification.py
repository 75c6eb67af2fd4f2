"""End-to-end integration tests — record, resolve and compare a multi-module build.

These tests exercise the ReproducibilityVerifier, FingerprintRecorder,
ReferenceResolver, LocalRepositorySource and Comparator working together.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from reprocheck.core.comparator import ArtifactsDifferError
from reprocheck.core.naming import repository_path
from reprocheck.core.properties import load_properties
from reprocheck.core.recorder import ConfigurationError
from reprocheck.core.sources import LocalRepositorySource
from reprocheck.core.verifier import ReproducibilityVerifier
from reprocheck.models.artifacts import ArtifactRef, ProjectInfo
from reprocheck.models.config import VerifyOptions
from reprocheck.models.manifest import BuildManifest, ModuleDeclaration
from reprocheck.models.reports import ComparisonOutcome

GROUP_ID = "org.example"
VERSION = "1.0"


def _write(path: Path, data: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def _artifact(artifact_id: str, file: Path, classifier: str = "") -> ArtifactRef:
    return ArtifactRef(
        group_id=GROUP_ID,
        artifact_id=artifact_id,
        base_version=VERSION,
        classifier=classifier,
        file=file,
    )


class TestMultiModuleVerification:
    """Aggregate record, skipped modules, early checks and root copies."""

    @pytest.fixture
    def root(self, tmp_path: Path) -> Path:
        return tmp_path

    @pytest.fixture
    def manifest(self, root: Path) -> BuildManifest:
        def project(artifact_id: str, basedir: Path) -> ProjectInfo:
            return ProjectInfo(
                group_id=GROUP_ID,
                artifact_id=artifact_id,
                version=VERSION,
                scm_connection="scm:git:https://example.org/demo.git",
                scm_tag="v1.0",
                basedir=basedir,
            )

        parent = project("parent", root)
        modules = [
            ModuleDeclaration(
                project=parent,
                descriptor_file=_write(root / "pom.xml", b"<project>parent</project>"),
            ),
            ModuleDeclaration(
                project=project("core", root / "core"),
                descriptor_file=_write(root / "core" / "pom.xml", b"<project>core</project>"),
                main=_artifact("core", _write(root / "core" / "target" / "core.jar", b"core")),
            ),
            ModuleDeclaration(
                project=project("app", root / "app"),
                descriptor_file=_write(root / "app" / "pom.xml", b"<project>app</project>"),
                main=_artifact("app", _write(root / "app" / "target" / "app.jar", b"app")),
                attached=[
                    _artifact(
                        "app",
                        _write(root / "app" / "target" / "app-sources.jar", b"src"),
                        classifier="sources",
                    ),
                ],
            ),
            ModuleDeclaration(
                project=project("it", root / "it"),
                descriptor_file=_write(root / "it" / "pom.xml", b"<project>it</project>"),
                main=_artifact("it", _write(root / "it" / "target" / "it.jar", b"it")),
                skip_deploy=True,
            ),
        ]
        return BuildManifest(
            root=parent, modules=modules, output_timestamp="2024-01-01T00:00:00Z"
        )

    def _publish_all(self, manifest: BuildManifest, repo: Path, *, skip: set[str] = frozenset()):
        for module in manifest.output_sets():
            for artifact in module.artifacts():
                if artifact.identity in skip or artifact.file is None:
                    continue
                _write(repo / repository_path(artifact), artifact.file.read_bytes())
        return LocalRepositorySource(repo)

    def _verifier(self, manifest: BuildManifest, environment, **options) -> ReproducibilityVerifier:
        return ReproducibilityVerifier(
            manifest, VerifyOptions(**options), environment=environment
        )

    def test_skipped_module_is_excluded(self, manifest, environment):
        verifier = self._verifier(manifest, environment)
        assert [m.project.artifact_id for m in verifier.modules] == ["parent", "core", "app"]
        assert verifier.last_module.project.artifact_id == "app"

    def test_skip_modules_glob(self, manifest, environment):
        verifier = self._verifier(manifest, environment, skip_modules=["org.example/c*"])
        assert [m.project.artifact_id for m in verifier.modules] == ["parent", "app"]

    def test_every_module_skipped_is_configuration_error(self, manifest, environment):
        verifier = self._verifier(manifest, environment, skip_modules=["org.example/*"])
        with pytest.raises(ConfigurationError, match="Every module is skipped"):
            verifier.record()

    def test_aggregate_record(self, manifest, environment, root: Path):
        path, index = self._verifier(manifest, environment).record()
        assert path == root / "app" / "target" / "app-1.0.buildinfo"

        props = load_properties(path)
        assert props["mvn.aggregate.artifact-id"] == "app"
        assert props["outputs.0.coordinates"] == "org.example:parent"
        assert props["outputs.0.0.filename"] == "parent-1.0.pom"
        assert props["outputs.1.1.filename"] == "core-1.0.jar"
        assert props["outputs.2.2.filename"] == "app-1.0-sources.jar"
        assert not any(value.startswith("it-") for value in props.values())
        assert len(index.recorded()) == 6

        root_copy = root / "target" / "parent-1.0.buildinfo"
        assert root_copy.read_bytes() == path.read_bytes()

    def test_reproducible_build(self, manifest, environment, root: Path):
        source = self._publish_all(manifest, root / "repo")
        results = self._verifier(manifest, environment).verify(source)

        # early checks for parent and core, then the aggregate
        assert len(results) == 3
        aggregate = results[-1]
        assert aggregate.report.ok == 6
        assert not aggregate.report.differs
        assert aggregate.report_path == root / "app" / "target" / "app-1.0.buildcompare"
        assert (root / "target" / "parent-1.0.buildcompare").read_bytes() == (
            aggregate.report_path.read_bytes()
        )
        assert aggregate.reference.record_path == (
            root / "target" / "reference" / "app-1.0.buildinfo"
        )
        assert (root / "core" / "target" / "core-1.0.buildcompare").is_file()

    def test_aggregate_only(self, manifest, environment, root: Path):
        source = self._publish_all(manifest, root / "repo")
        results = self._verifier(manifest, environment, aggregate_only=True).verify(source)
        assert len(results) == 1
        assert not (root / "core" / "target" / "core-1.0.buildcompare").exists()

    def test_artifact_missing_from_reference(self, manifest, environment, root: Path):
        source = self._publish_all(
            manifest, root / "repo", skip={"org.example:app:jar:sources:1.0"}
        )
        verifier = self._verifier(manifest, environment)
        with pytest.raises(ArtifactsDifferError):
            verifier.verify(source)

        results = self._verifier(manifest, environment, fail_on_difference=False).verify(source)
        report = results[-1].report
        assert report.ok == 5
        assert report.missing == 1
        assert results[-1].reference.not_found == ["org.example:app:jar:sources:1.0"]
        outcomes = {c.filename: c.outcome for c in report.comparisons}
        assert outcomes["app-1.0-sources.jar"] is ComparisonOutcome.MISSING_FROM_REFERENCE

    def test_differing_artifact(self, manifest, environment, root: Path):
        source = self._publish_all(manifest, root / "repo")
        _write(root / "core" / "target" / "core.jar", b"core, rebuilt differently")

        results = self._verifier(manifest, environment, fail_on_difference=False).verify(source)
        early_core = results[1]
        assert early_core.report.ko_files == ["core-1.0.jar"]
        report = results[-1].report
        assert report.ko_files == ["core-1.0.jar"]
        assert report.remediations == [
            "diffoscope target/reference/org.example/core-1.0.jar core/target/core.jar"
        ]
        text = results[-1].report_path.read_text(encoding="utf-8")
        assert text.splitlines()[-1] == f"# {report.remediations[0]}"


class TestSingleModuleVerification:
    def test_signature_ignored_end_to_end(self, tmp_path: Path, environment):
        project = ProjectInfo(
            group_id=GROUP_ID, artifact_id="demo", version=VERSION, basedir=tmp_path
        )
        jar = _write(tmp_path / "target" / "demo.jar", b"jar")
        signature = ArtifactRef(
            group_id=GROUP_ID,
            artifact_id="demo",
            base_version=VERSION,
            extension="jar.asc",
            file=_write(tmp_path / "target" / "demo.jar.asc", b"sig"),
        )
        manifest = BuildManifest(
            root=project,
            modules=[
                ModuleDeclaration(
                    project=project,
                    descriptor_file=_write(tmp_path / "pom.xml", b"<project/>"),
                    main=_artifact("demo", jar),
                    attached=[signature],
                )
            ],
            output_timestamp="1704067200",
        )
        repo = tmp_path / "repo"
        for module in manifest.output_sets():
            for artifact in module.artifacts():
                _write(repo / repository_path(artifact), artifact.file.read_bytes())

        verifier = ReproducibilityVerifier(manifest, environment=environment)
        (result,) = verifier.verify(LocalRepositorySource(repo))
        report = result.report
        assert (report.ok, report.ko, report.ignored, report.missing) == (2, 0, 1, 0)
        assert report.ignored_files == ["demo-1.0.jar.asc"]
        assert not (tmp_path / "target" / "reference" / GROUP_ID / "demo-1.0.jar.asc").exists()
