"""Reading and writing ``key=value`` record files.

Records and comparison reports are flat property documents: one
``key=value`` pair per line, ``#`` or ``!`` comment lines, blank lines as
separators. Keys never contain ``=``; values are kept verbatim after the
first ``=``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from reprocheck.models.records import (
    COORDINATES_SUFFIX,
    FILENAME_SUFFIX,
    GROUP_ID_SUFFIX,
    LENGTH_SUFFIX,
    OUTPUTS_PREFIX,
    SHA512_SUFFIX,
    RecordEntry,
)

logger = logging.getLogger(__name__)


class RecordWriteError(OSError):
    """Raised when a record or report file cannot be written."""


def parse_properties(text: str) -> dict[str, str]:
    """Parse property text into an insertion-ordered dict."""
    props: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        key, sep, value = line.partition("=")
        if not sep:
            key, sep, value = line.partition(":")
        props[key.strip()] = value.strip()
    return props


def load_properties(path: Path | None) -> dict[str, str]:
    """Load a record file; a missing or unreadable file yields an empty map."""
    if path is None:
        return {}
    try:
        return parse_properties(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return {}


def load_output_properties(path: Path | None) -> dict[str, str]:
    """Load only the ``outputs.*`` entry keys of a record.

    Header lines and the per-module ``coordinates`` lines are discarded.
    """
    return {
        key: value
        for key, value in load_properties(path).items()
        if key.startswith(OUTPUTS_PREFIX) and not key.endswith(COORDINATES_SUFFIX)
    }


def parse_entries(props: dict[str, str]) -> list[RecordEntry]:
    """Rebuild the record entries of an ``outputs.*`` property map."""
    entries: list[RecordEntry] = []
    for key, filename in props.items():
        if not key.endswith(FILENAME_SUFFIX):
            continue
        prefix = key.removesuffix(FILENAME_SUFFIX)
        entries.append(
            RecordEntry(
                prefix=prefix,
                group_id=props.get(prefix + GROUP_ID_SUFFIX, ""),
                filename=filename,
                length=int(props.get(prefix + LENGTH_SUFFIX, "-1")),
                sha512=props.get(prefix + SHA512_SUFFIX, ""),
            )
        )
    return entries


def write_atomically(path: Path, text: str) -> None:
    """Write *text* to *path* in one step.

    The content goes to a temporary sibling first and replaces *path* only
    once fully flushed, so a failed write never leaves a partial record.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
                fh.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise RecordWriteError(f"Error creating file {path}: {exc}") from exc
