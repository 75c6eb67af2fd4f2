"""Comparator — classify every local output against the reference record.

Matching is by canonical filename *and* group: two modules may publish a
file with the same name, and each must only claim its own reference entry.
Claimed reference entries are removed, so what is left afterwards are
reference outputs the local build no longer produces.
"""

from __future__ import annotations

import logging
from pathlib import Path

from reprocheck.core.naming import canonical_filename
from reprocheck.core.properties import (
    load_output_properties,
    load_properties,
    write_atomically,
)
from reprocheck.models.records import (
    ENTRY_SUFFIXES,
    FILENAME_SUFFIX,
    GROUP_ID_SUFFIX,
    LENGTH_SUFFIX,
    SHA512_SUFFIX,
    ArtifactIndex,
    IndexedArtifact,
    ReferenceBuild,
)
from reprocheck.models.reports import (
    ArtifactComparison,
    ComparisonOutcome,
    ComparisonReport,
)

logger = logging.getLogger(__name__)

GUIDE_URL = "https://maven.apache.org/guides/mini/guide-reproducible-builds.html"


class LookupInconsistencyError(RuntimeError):
    """Raised when recorded data disagrees with the artifact index."""


class ArtifactsDifferError(RuntimeError):
    """Raised when the build does not reproduce the reference and failing is enabled."""


def find_prefix(reference: dict[str, str], group_id: str, filename: str) -> str | None:
    """Claim the reference entry with *filename* in *group_id*.

    The entry's filename key is removed so no other artifact can match it.
    """
    for key, value in reference.items():
        if not key.endswith(FILENAME_SUFFIX) or value != filename:
            continue
        prefix = key.removesuffix(FILENAME_SUFFIX)
        if reference.get(prefix + GROUP_ID_SUFFIX) == group_id:
            del reference[key]
            return prefix
    return None


def count_entries(props: dict[str, str]) -> int:
    """Number of distinct entry prefixes left in an ``outputs.*`` map."""
    prefixes = set()
    for key in props:
        for suffix in ENTRY_SUFFIXES:
            if key.endswith(suffix):
                prefixes.add(key.removesuffix(suffix))
                break
    return len(prefixes)


class Comparator:
    """Compares a local record with a reference record.

    Parameters
    ----------
    basedir:
        Root directory of the build; paths in remediation commands are
        made relative to it.
    fail_on_difference:
        Whether :meth:`enforce` raises when outputs differ or are missing.
    """

    def __init__(self, basedir: Path, *, fail_on_difference: bool = True) -> None:
        self._basedir = Path(basedir)
        self._fail = fail_on_difference

    # ------------------------------------------------------------------
    # Compare
    # ------------------------------------------------------------------

    def compare(
        self,
        local_record: Path,
        reference: ReferenceBuild,
        index: ArtifactIndex,
        version: str,
    ) -> ComparisonReport:
        """Classify each indexed artifact and count unclaimed reference entries.

        Raises
        ------
        LookupInconsistencyError
            If a recorded artifact has no local entry, or no reference entry
            although the reference source was not reported to lack it.
        """
        actual = load_output_properties(local_record)
        expected = load_output_properties(reference.record_path)
        not_found = set(reference.not_found)

        comparisons: list[ArtifactComparison] = []
        for entry in index.entries:
            if entry.is_ignored:
                comparisons.append(
                    ArtifactComparison(
                        artifact=entry.artifact,
                        filename=canonical_filename(entry.artifact),
                        outcome=ComparisonOutcome.IGNORED,
                    )
                )
                continue
            comparisons.append(
                self._check_artifact(entry, actual, expected, reference, not_found)
            )

        header = load_properties(reference.record_path)
        local_env = reference.local_env
        return ComparisonReport(
            version=version,
            comparisons=comparisons,
            unmatched_reference=count_entries(expected),
            reference_java_version=header.get("java.version"),
            reference_os_name=header.get("os.name"),
            local_java_version=local_env.java_version if local_env else None,
            local_os_name=local_env.os_name if local_env else None,
        )

    def _check_artifact(
        self,
        entry: IndexedArtifact,
        actual: dict[str, str],
        expected: dict[str, str],
        reference: ReferenceBuild,
        not_found: set[str],
    ) -> ArtifactComparison:
        artifact = entry.artifact
        prefix = entry.prefix
        filename = actual.pop(f"{prefix}{FILENAME_SUFFIX}", None)
        length = actual.pop(f"{prefix}{LENGTH_SUFFIX}", None)
        sha512 = actual.pop(f"{prefix}{SHA512_SUFFIX}", None)
        actual.pop(f"{prefix}{GROUP_ID_SUFFIX}", None)
        if filename is None:
            raise LookupInconsistencyError(
                f"Artifact {artifact} was indexed as {prefix} but is not in the local record"
            )

        reference_prefix = find_prefix(expected, artifact.group_id, filename)
        if reference_prefix is None:
            if artifact.identity in not_found or not reference.synthesized:
                logger.warning("%s is missing from the reference build", filename)
                return ArtifactComparison(
                    artifact=artifact,
                    filename=filename,
                    outcome=ComparisonOutcome.MISSING_FROM_REFERENCE,
                )
            raise LookupInconsistencyError(
                f"No reference entry for {artifact.group_id}/{filename} although "
                "its reference artifact was resolved"
            )

        reference_length = expected.pop(reference_prefix + LENGTH_SUFFIX, None)
        reference_sha512 = expected.pop(reference_prefix + SHA512_SUFFIX, None)
        expected.pop(reference_prefix + GROUP_ID_SUFFIX, None)

        # a size mismatch makes the hash mismatch redundant
        if length != reference_length:
            outcome = ComparisonOutcome.SIZE_MISMATCH
        elif sha512 != reference_sha512:
            outcome = ComparisonOutcome.HASH_MISMATCH
        else:
            return ArtifactComparison(
                artifact=artifact, filename=filename, outcome=ComparisonOutcome.OK
            )

        remediation = self.diffoscope(entry, reference.reference_dir)
        logger.error(
            "%s mismatch %s: investigate with %s", outcome.value, filename, remediation
        )
        return ArtifactComparison(
            artifact=artifact,
            filename=filename,
            outcome=outcome,
            remediation=remediation,
        )

    def diffoscope(self, entry: IndexedArtifact, reference_dir: Path) -> str:
        """Command comparing the reference copy with the local file.

        The local file name may have been customized by the module; the
        reference side always uses the repository (canonical) filename.
        """
        artifact = entry.artifact
        reference_file = Path(reference_dir) / artifact.group_id / canonical_filename(artifact)
        if artifact.file is None:
            return (
                f"missing file for {artifact} reference = "
                f"{self.relative(reference_file)} actual = null"
            )
        return f"diffoscope {self.relative(reference_file)} {self.relative(artifact.file)}"

    def relative(self, path: Path) -> str:
        try:
            return Path(path).relative_to(self._basedir).as_posix()
        except ValueError:
            return Path(path).as_posix()

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------

    @staticmethod
    def render_report(report: ComparisonReport) -> str:
        lines = [
            f"version={report.version}",
            f"ok={report.ok}",
            f"ko={report.ko}",
            f"ignored={report.ignored}",
            f'okFiles="{" ".join(report.ok_files)}"',
            f'koFiles="{" ".join(report.ko_files)}"',
            f'ignoredFiles="{" ".join(report.ignored_files)}"',
        ]
        if report.reference_java_version is not None:
            lines.append(f'reference_java_version="{report.reference_java_version}"')
        if report.reference_os_name is not None:
            lines.append(f'reference_os_name="{report.reference_os_name}"')
        lines.extend(f"# {command}" for command in report.remediations)
        return "\n".join(lines) + "\n"

    def write_report(self, report: ComparisonReport, path: Path) -> Path:
        write_atomically(path, self.render_report(report))
        logger.info("Reproducible Build output comparison saved to %s", path)
        return path

    def enforce(
        self,
        report: ComparisonReport,
        reference_record: Path | None = None,
        local_record: Path | None = None,
    ) -> None:
        """Log the summary and apply the fail-on-difference policy.

        Raises
        ------
        ArtifactsDifferError
            If outputs differ or are missing and failing is enabled.
        """
        ignored = f", {report.ignored} ignored" if report.ignored else ""
        if not report.differs:
            logger.info(
                "Reproducible Build output summary: %d files ok%s", report.ok, ignored
            )
            return

        log = logger.error if self._fail else logger.warning
        missing = f", {report.missing} missing" if report.missing else ""
        log(
            "Reproducible Build output summary: %d files ok, %d different%s%s",
            report.ok,
            report.ko,
            missing,
            ignored,
        )
        if reference_record is not None and local_record is not None:
            log("see diff %s %s", self.relative(reference_record), self.relative(local_record))
        log("see also %s", GUIDE_URL)
        for note in report.drift:
            log("environment drift: %s", note)

        if self._fail:
            raise ArtifactsDifferError("Build artifacts are different from reference")
