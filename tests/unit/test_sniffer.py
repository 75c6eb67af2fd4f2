"""Tests for the archive environment sniffer."""

from __future__ import annotations

from pathlib import Path

from reprocheck.core.sniffer import (
    classify_line_endings,
    extract_java_version,
    first_java_version,
    parse_manifest,
    sniff,
)
from reprocheck.models.artifacts import ArtifactRef


class TestManifest:
    def test_main_section_only(self):
        text = "Manifest-Version: 1.0\r\nBuild-Jdk: 11.0.2\r\n\r\nName: a/B.class\r\nX: y\r\n"
        assert parse_manifest(text) == {"Manifest-Version": "1.0", "Build-Jdk": "11.0.2"}

    def test_continuation_lines(self):
        text = "Class-Path: lib/a.jar lib/\r\n b.jar\r\n"
        assert parse_manifest(text)["Class-Path"] == "lib/a.jar lib/b.jar"

    def test_spec_attribute_preferred(self):
        version = extract_java_version({"Build-Jdk": "17.0.2", "Build-Jdk-Spec": "17"})
        assert version == "17 (from MANIFEST.MF Build-Jdk-Spec)"

    def test_raw_attribute_fallback(self):
        assert extract_java_version({"Build-Jdk": "1.8.0_202"}) == (
            "1.8.0_202 (from MANIFEST.MF Build-Jdk)"
        )

    def test_attribute_names_ignore_case(self):
        attributes = parse_manifest("manifest-version: 1.0\r\nbuild-jdk-spec: 17\r\n")
        assert extract_java_version(attributes) == "17 (from MANIFEST.MF Build-Jdk-Spec)"
        assert extract_java_version({"BUILD-JDK": "11.0.2"}) == (
            "11.0.2 (from MANIFEST.MF Build-Jdk)"
        )

    def test_no_attribute(self):
        assert extract_java_version({"Created-By": "Maven"}) is None


class TestLineEndings:
    def test_windows(self):
        assert classify_line_endings("a=1\r\nb=2\r\n").startswith("Windows")

    def test_unix(self):
        assert classify_line_endings("a=1\nb=2\n").startswith("Unix")

    def test_single_line(self):
        assert classify_line_endings("a=1") is None


class TestSniff:
    def test_java_and_os(self, make_jar):
        jar = make_jar("demo.jar", pom_properties="version=1.0\r\ngroupId=org.example\r\n")
        result = sniff(jar, "org.example", "demo")
        assert result.java_version == "17 (from MANIFEST.MF Build-Jdk-Spec)"
        assert result.os_name == "Windows (from pom.properties newline)"

    def test_missing_pom_properties_leaves_os_unset(self, make_jar):
        result = sniff(make_jar("demo.jar"), "org.example", "demo")
        assert result.java_version is not None
        assert result.os_name is None

    def test_no_manifest(self, make_jar):
        assert sniff(make_jar("demo.jar", manifest=None), "org.example", "demo") is None

    def test_not_a_zip(self, tmp_dir: Path):
        path = tmp_dir / "broken.jar"
        path.write_bytes(b"not a zip")
        assert sniff(path, "org.example", "demo") is None


class TestFirstJavaVersion:
    def test_skips_non_archives_and_stops_early(self, make_jar, tmp_dir: Path):
        pom = tmp_dir / "demo-1.0.pom"
        pom.write_text("<project/>")
        no_jdk = make_jar("a.jar", manifest="Manifest-Version: 1.0\r\n")
        with_jdk = make_jar("b.jar")
        seen: list[str] = []

        def candidates():
            for artifact_id, extension, path in (
                ("demo", "pom", pom),
                ("a", "jar", no_jdk),
                ("b", "jar", with_jdk),
                ("c", "jar", tmp_dir / "never-opened.jar"),
            ):
                seen.append(artifact_id)
                yield (
                    ArtifactRef(
                        group_id="org.example",
                        artifact_id=artifact_id,
                        base_version="1.0",
                        extension=extension,
                    ),
                    path,
                )

        found = first_java_version(candidates())
        assert found is not None
        artifact, result = found
        assert artifact.artifact_id == "b"
        assert result.java_version.startswith("17")
        assert seen == ["demo", "a", "b"]

    def test_none_when_nothing_names_a_jdk(self):
        assert first_java_version([]) is None
