"""Environment sniffer — guess JDK version and OS from a compiled archive.

Reference builds rarely publish their environment, but archives carry
hints: ``META-INF/MANIFEST.MF`` usually names the building JDK, and the
line endings of the embedded ``pom.properties`` betray the OS family.
Absent metadata is expected and never an error.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable
from pathlib import Path

from reprocheck.models.artifacts import ArtifactRef
from reprocheck.models.environment import UNIX, WINDOWS, SniffResult

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSIONS = frozenset({"jar", "war", "ear", "rar"})
MANIFEST_PATH = "META-INF/MANIFEST.MF"


def parse_manifest(text: str) -> dict[str, str]:
    """Parse the main section of a JAR manifest.

    Continuation lines start with a single space. Parsing stops at the
    first blank line (start of the per-entry sections).
    """
    attributes: dict[str, str] = {}
    last_key: str | None = None
    for line in text.splitlines():
        if not line:
            break
        if line.startswith(" ") and last_key is not None:
            attributes[last_key] += line[1:]
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        last_key = key.strip()
        attributes[last_key] = value.strip()
    return attributes


def extract_java_version(attributes: dict[str, str]) -> str | None:
    """Prefer the normalized ``Build-Jdk-Spec`` over the raw ``Build-Jdk``.

    Attribute names are case-insensitive.
    """
    lowered = {key.lower(): value for key, value in attributes.items()}
    value = lowered.get("build-jdk-spec")
    if value is not None:
        return f"{value} (from MANIFEST.MF Build-Jdk-Spec)"
    value = lowered.get("build-jdk")
    if value is not None:
        return f"{value} (from MANIFEST.MF Build-Jdk)"
    return None


def pom_properties_path(group_id: str, artifact_id: str) -> str:
    return f"META-INF/maven/{group_id}/{artifact_id}/pom.properties"


def classify_line_endings(content: str) -> str | None:
    if "\r\n" in content:
        return f"{WINDOWS} (from pom.properties newline)"
    if "\n" in content:
        return f"{UNIX} (from pom.properties newline)"
    return None


def sniff(archive: Path, group_id: str, artifact_id: str) -> SniffResult | None:
    """Infer the producing environment of *archive*.

    Returns ``None`` when the archive cannot be opened or has no manifest.
    A missing ``pom.properties`` only leaves ``os_name`` unset.
    """
    logger.debug("Guessing java.version and os.name from jar %s", archive)
    try:
        with zipfile.ZipFile(archive) as jar:
            try:
                manifest = jar.read(MANIFEST_PATH).decode("utf-8", errors="replace")
            except KeyError:
                logger.warning("no MANIFEST.MF found in jar %s", archive)
                return None
            java_version = extract_java_version(parse_manifest(manifest))

            entry = pom_properties_path(group_id, artifact_id)
            os_name = None
            try:
                content = jar.read(entry).decode("utf-8", errors="replace")
            except KeyError:
                logger.debug("%s not found in %s", entry, archive)
            else:
                os_name = classify_line_endings(content)
            return SniffResult(java_version=java_version, os_name=os_name)
    except (OSError, zipfile.BadZipFile) as exc:
        logger.warning("unable to open jar file %s: %s", archive, exc)
        return None


def sniff_artifact(artifact: ArtifactRef, file: Path | None = None) -> SniffResult | None:
    """Sniff *file* (default: the artifact's own file) using its coordinates."""
    target = file if file is not None else artifact.file
    if target is None:
        return None
    return sniff(target, artifact.group_id, artifact.artifact_id)


def is_sniff_candidate(artifact: ArtifactRef) -> bool:
    return artifact.extension in ARCHIVE_EXTENSIONS


def first_java_version(
    candidates: Iterable[tuple[ArtifactRef, Path]],
) -> tuple[ArtifactRef, SniffResult] | None:
    """Scan archives in order, stopping at the first one naming a JDK."""
    results = (
        (artifact, sniff(file, artifact.group_id, artifact.artifact_id))
        for artifact, file in candidates
        if is_sniff_candidate(artifact)
    )
    return next(
        (
            (artifact, result)
            for artifact, result in results
            if result is not None and result.java_version is not None
        ),
        None,
    )
