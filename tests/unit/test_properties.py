"""Tests for property record parsing and atomic writes."""

from __future__ import annotations

from pathlib import Path

import pytest

from reprocheck.core.properties import (
    RecordWriteError,
    load_output_properties,
    load_properties,
    parse_entries,
    parse_properties,
    write_atomically,
)
from reprocheck.models.records import RecordEntry


class TestParseProperties:
    def test_skips_comments_and_blank_lines(self):
        props = parse_properties("# comment\n! other\n\nname=demo\n")
        assert props == {"name": "demo"}

    def test_value_keeps_equals_signs(self):
        props = parse_properties("source.scm.uri=scm:git:https://x.org/?a=b\n")
        assert props["source.scm.uri"] == "scm:git:https://x.org/?a=b"

    def test_colon_separator(self):
        assert parse_properties("key: value\n") == {"key": "value"}

    def test_insertion_order(self):
        props = parse_properties("b=1\na=2\nc=3\n")
        assert list(props) == ["b", "a", "c"]

    def test_crlf(self):
        assert parse_properties("a=1\r\nb=2\r\n") == {"a": "1", "b": "2"}


class TestLoadProperties:
    def test_missing_file_is_empty(self, tmp_dir: Path):
        assert load_properties(tmp_dir / "absent.buildinfo") == {}
        assert load_properties(None) == {}

    def test_output_properties_only(self, tmp_dir: Path):
        path = tmp_dir / "demo.buildinfo"
        path.write_text(
            "name=demo\n"
            "outputs.0.coordinates=org.example:demo\n"
            "outputs.0.0.groupId=org.example\n"
            "outputs.0.0.filename=demo-1.0.pom\n",
            encoding="utf-8",
        )
        assert load_output_properties(path) == {
            "outputs.0.0.groupId": "org.example",
            "outputs.0.0.filename": "demo-1.0.pom",
        }


class TestRoundTrip:
    def test_entries_survive_write_and_parse(self, tmp_dir: Path):
        entries = [
            RecordEntry(
                prefix="outputs.0",
                group_id="org.example",
                filename="demo-1.0.pom",
                length=10,
                sha512="ab" * 64,
            ),
            RecordEntry(
                prefix="outputs.1",
                group_id="org.example",
                filename="demo-1.0.jar",
                length=2048,
                sha512="cd" * 64,
            ),
        ]
        text = "\n".join(line for e in entries for line in e.lines()) + "\n"
        path = tmp_dir / "record.buildinfo"
        write_atomically(path, text)
        assert parse_entries(load_output_properties(path)) == entries


class TestWriteAtomically:
    def test_creates_parent_directories(self, tmp_dir: Path):
        path = tmp_dir / "a" / "b" / "out.buildinfo"
        write_atomically(path, "x=1\n")
        assert path.read_text(encoding="utf-8") == "x=1\n"

    def test_no_temporary_left_behind(self, tmp_dir: Path):
        path = tmp_dir / "out.buildinfo"
        write_atomically(path, "x=1\n")
        write_atomically(path, "x=2\n")
        assert [p.name for p in tmp_dir.iterdir()] == ["out.buildinfo"]
        assert path.read_text(encoding="utf-8") == "x=2\n"

    def test_unix_newlines(self, tmp_dir: Path):
        path = tmp_dir / "out.buildinfo"
        write_atomically(path, "a=1\nb=2\n")
        assert path.read_bytes() == b"a=1\nb=2\n"

    def test_failure_raises_record_write_error(self, tmp_dir: Path):
        blocker = tmp_dir / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(RecordWriteError, match="Error creating file"):
            write_atomically(blocker / "out.buildinfo", "x=1\n")
