"""Reference resolver — download or synthesize the reference record.

Per invocation:

    try direct record -> fetch each artifact -> sniff once -> synthesize

1. A record published next to the reference artifacts is looked up first.
   Records written by another recorder release are not comparable, so a
   found record is only used when ``trust_published_record`` is set.
2. Each recorded local artifact is fetched from the reference source.
   "Not found" is expected (new artifacts, changed classifiers) and only
   logged; any other source failure aborts the resolution.
3. The first downloaded archive that names a JDK provides the reference
   environment; the matching local archive is sniffed for drift notes.
4. A minimal record is written from the downloaded files.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import ClassVar

from reprocheck.core.naming import canonical_filename
from reprocheck.core.properties import load_properties
from reprocheck.core.recorder import (
    RECORD_FORMAT_KEY,
    RECORD_FORMAT_VERSION,
    FingerprintRecorder,
)
from reprocheck.core.sniffer import first_java_version, sniff_artifact
from reprocheck.core.sources import (
    ArtifactNotFoundError,
    ReferenceSource,
    ReferenceTransportError,
)
from reprocheck.models.artifacts import ArtifactRef, ProjectInfo
from reprocheck.models.environment import SniffResult
from reprocheck.models.records import (
    RECORD_EXTENSION,
    ArtifactIndex,
    IndexedArtifact,
    ReferenceBuild,
)

logger = logging.getLogger(__name__)


class ReferenceResolver:
    """Acquires a reference record comparable to the local one.

    Parameters
    ----------
    source:
        Where reference artifacts come from.
    reference_dir:
        Download directory; artifacts land in ``<reference_dir>/<groupId>/``
        and the reference record directly in ``<reference_dir>``.
    fetch_workers:
        Upper bound on concurrent downloads.
    line_separator:
        Line separator of the local build, checked against the reference OS.
    """

    # Flip to reuse published records from a compatible recorder release.
    trust_published_record: ClassVar[bool] = False

    def __init__(
        self,
        source: ReferenceSource,
        reference_dir: Path,
        *,
        fetch_workers: int = 1,
        line_separator: str = os.linesep,
    ) -> None:
        self._source = source
        self._reference_dir = Path(reference_dir)
        self._fetch_workers = max(1, fetch_workers)
        self._line_separator = line_separator

    @property
    def reference_dir(self) -> Path:
        return self._reference_dir

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def resolve(
        self,
        project: ProjectInfo,
        index: ArtifactIndex,
        local_record: Path,
    ) -> ReferenceBuild:
        """Return the reference record for *project*.

        Raises
        ------
        ReferenceTransportError
            On any source or storage failure other than a missing artifact.
        """
        self._reference_dir.mkdir(parents=True, exist_ok=True)

        published = self._download_published_record(project)
        if published is not None:
            if self._is_trusted(published):
                return ReferenceBuild(
                    record_path=published,
                    reference_dir=self._reference_dir,
                    synthesized=False,
                )
            logger.warning(
                "dropping downloaded reference buildinfo because it may be "
                "generated from a different recorder release..."
            )

        downloads, not_found = self._fetch_all(index)
        reference_env, local_env = self._sniff_once(index, downloads)
        record_path = self._synthesize(
            self._reference_dir / Path(local_record).name,
            index,
            downloads,
            reference_env,
            local_env,
        )
        return ReferenceBuild(
            record_path=record_path,
            reference_dir=self._reference_dir,
            not_found=not_found,
            reference_env=reference_env,
            local_env=local_env,
        )

    # ------------------------------------------------------------------
    # Step 1: published record
    # ------------------------------------------------------------------

    def _download_published_record(self, project: ProjectInfo) -> Path | None:
        record = ArtifactRef(
            group_id=project.group_id,
            artifact_id=project.artifact_id,
            base_version=project.version,
            extension=RECORD_EXTENSION,
        )
        try:
            resolved = self._source.resolve(record)
        except ArtifactNotFoundError:
            logger.info(
                "Reference buildinfo file not found: it will be generated from "
                "downloaded reference artifacts"
            )
            return None
        dest = self._copy(record, resolved, self._reference_dir / canonical_filename(record))
        logger.info("Reference buildinfo file found, copied to %s", dest)
        return dest

    def _is_trusted(self, record: Path) -> bool:
        if not self.trust_published_record:
            return False
        return load_properties(record).get(RECORD_FORMAT_KEY) == RECORD_FORMAT_VERSION

    # ------------------------------------------------------------------
    # Step 2: per-artifact fetch
    # ------------------------------------------------------------------

    def _fetch_all(self, index: ArtifactIndex) -> tuple[dict[str, Path], list[str]]:
        candidates = index.recorded()
        if self._fetch_workers == 1 or len(candidates) < 2:
            results = [self._fetch(entry) for entry in candidates]
        else:
            with ThreadPoolExecutor(max_workers=self._fetch_workers) as pool:
                results = list(pool.map(self._fetch, candidates))

        downloads: dict[str, Path] = {}
        not_found: list[str] = []
        for entry, file in results:
            if file is None:
                not_found.append(entry.artifact.identity)
            else:
                downloads[entry.artifact.identity] = file
        return downloads, not_found

    def _fetch(self, entry: IndexedArtifact) -> tuple[IndexedArtifact, Path | None]:
        artifact = entry.artifact
        try:
            resolved = self._source.resolve(artifact)
        except ArtifactNotFoundError:
            logger.warning("Reference artifact not found %s", artifact)
            return entry, None
        dest = self._reference_dir / artifact.group_id / canonical_filename(artifact)
        return entry, self._copy(artifact, resolved, dest)

    @staticmethod
    def _copy(artifact: ArtifactRef, resolved: Path, dest: Path) -> Path:
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            if Path(resolved).resolve() != dest.resolve():
                shutil.copyfile(resolved, dest)
        except OSError as exc:
            raise ReferenceTransportError(
                f"Error copying reference artifact {artifact}: {exc}"
            ) from exc
        return dest

    # ------------------------------------------------------------------
    # Step 3: sniff once
    # ------------------------------------------------------------------

    @staticmethod
    def _sniff_once(
        index: ArtifactIndex, downloads: dict[str, Path]
    ) -> tuple[SniffResult | None, SniffResult | None]:
        def candidates() -> Iterator[tuple[ArtifactRef, Path]]:
            for entry in index.recorded():
                file = downloads.get(entry.artifact.identity)
                if file is not None:
                    yield entry.artifact, file

        found = first_java_version(candidates())
        if found is None:
            return None, None
        artifact, reference_env = found
        local_env = sniff_artifact(artifact) or SniffResult()
        return reference_env, local_env

    # ------------------------------------------------------------------
    # Step 4: synthesize
    # ------------------------------------------------------------------

    def _synthesize(
        self,
        path: Path,
        index: ArtifactIndex,
        downloads: dict[str, Path],
        reference_env: SniffResult | None,
        local_env: SniffResult | None,
    ) -> Path:
        recorder = FingerprintRecorder()
        if reference_env is not None:
            recorder.write_reference_environment(reference_env)
            self._log_drift(reference_env, local_env or SniffResult())

        for entry in index.recorded():
            file = downloads.get(entry.artifact.identity)
            if file is not None:
                recorder.write_file(entry.prefix, entry.artifact.group_id, file)

        recorder.write(path)
        logger.info("Minimal buildinfo generated from downloaded artifacts: %s", path)
        return path

    def _log_drift(self, reference_env: SniffResult, local_env: SniffResult) -> None:
        if reference_env.java_version is not None:
            logger.info("Reference build java.version: %s", reference_env.java_version)
            if reference_env.java_version != local_env.java_version:
                logger.error("Current build java.version: %s", local_env.java_version)
        if reference_env.os_name is not None:
            logger.info("Reference build os.name: %s", reference_env.os_name)
            if reference_env.os_name != local_env.os_name:
                logger.error("Current build os.name: %s", local_env.os_name)
            if reference_env.expected_line_separator != self._line_separator:
                logger.warning("Current line separator does not match reference build OS")
