"""Fingerprint recorder — writes ``.buildinfo`` records.

A record is staged in memory and flushed once by :meth:`write`; nothing
reaches disk until every artifact has been fingerprinted. Two layouts
exist:

* single module: entries under ``outputs.<n>``
* aggregate (multi-module): ``outputs.<module>.coordinates`` then entries
  under ``outputs.<module>.<n>``

The recorder also runs in a minimal mode used for synthesized reference
records: no header, optional environment lines, and entries written
directly with :meth:`write_file`.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from reprocheck.core.environment import extract_java_major_version, parse_java_version
from reprocheck.core.hasher import Fingerprint, fingerprint
from reprocheck.core.naming import canonical_filename
from reprocheck.core.properties import write_atomically
from reprocheck.models.artifacts import ArtifactRef, ModuleOutputSet, ProjectInfo
from reprocheck.models.config import IgnoreRules
from reprocheck.models.environment import BuildEnvironment, SniffResult
from reprocheck.models.records import (
    COORDINATES_SUFFIX,
    OUTPUTS_PREFIX,
    ArtifactIndex,
    IndexedArtifact,
    RecordEntry,
)

logger = logging.getLogger(__name__)

RECORD_FORMAT_VERSION = "1.0-SNAPSHOT"
RECORD_FORMAT_KEY = "buildinfo.version"
SIGNATURE_SUFFIX = ".asc"
JAVADOC_CLASSIFIER = "javadoc"


class ConfigurationError(RuntimeError):
    """Raised when the build declares outputs that cannot be fingerprinted."""


class FingerprintRecorder:
    """Builds one fingerprint record.

    Parameters
    ----------
    aggregate:
        ``True`` for multi-module builds (module-indexed prefixes).
    environment:
        Local build environment for the header; not needed in minimal mode.
    build_tool:
        Short build tool name used for the ``build-tool`` line and the
        ``<tool>.*`` header keys.
    hash_workers:
        Upper bound on concurrent file hashing. Entry order never depends
        on it.
    """

    def __init__(
        self,
        *,
        aggregate: bool = False,
        environment: BuildEnvironment | None = None,
        build_tool: str = "mvn",
        hash_workers: int = 1,
    ) -> None:
        self._aggregate = aggregate
        self._environment = environment
        self._build_tool = build_tool
        self._hash_workers = max(1, hash_workers)
        self._lines: list[str] = []
        self._entries: list[RecordEntry] = []
        self._index: dict[str, IndexedArtifact] = {}
        self._module_count = -1

    @property
    def entries(self) -> list[RecordEntry]:
        return list(self._entries)

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def write_header(
        self,
        project: ProjectInfo,
        aggregate_project: ProjectInfo | None = None,
        *,
        reproducible: bool = False,
    ) -> None:
        """Write identity, source and environment information.

        In reproducible mode the environment is reduced to the major JDK
        version and the OS family, and the build tool version is left out,
        so the header itself is stable across hosts.
        """
        env = self._environment or BuildEnvironment()
        tool = self._build_tool
        p = self._lines.append

        p("# https://reproducible-builds.org/docs/jvm/")
        p(f"{RECORD_FORMAT_KEY}={RECORD_FORMAT_VERSION}")
        p("")
        p(f"name={project.display_name}")
        p(f"group-id={project.group_id}")
        p(f"artifact-id={project.artifact_id}")
        p(f"version={project.version}")
        p("")
        self._write_source_information(project)
        p("")
        p("# build instructions")
        p(f"build-tool={tool}")
        p("")
        if reproducible:
            p("# build environment information (simplified for reproducibility)")
            p(f"java.version={extract_java_major_version(env.java_version)}")
            p(f"os.name={env.os_family}")
        else:
            p("# effective build environment information")
            p(f"java.version={env.java_version}")
            p(f"java.vendor={env.java_vendor}")
            p(f"os.name={env.os_name}")
            if env.os_arch:
                p(f"os.arch={env.os_arch}")
            if env.os_version:
                p(f"os.version={env.os_version}")
        p("")
        p(f"# {tool} rebuild instructions and effective environment")
        if not reproducible and env.build_tool_version:
            p(f"{tool}.version={env.build_tool_version}")
        if project.minimum_build_tool_version:
            p(f"{tool}.minimum.version={project.minimum_build_tool_version}")
        if env.toolchain_jdk is not None:
            toolchain = env.toolchain_jdk
            if reproducible:
                toolchain = extract_java_major_version(
                    parse_java_version(toolchain) or toolchain
                )
            p(f"{tool}.toolchain.jdk={toolchain}")
        if self._aggregate and aggregate_project is not None:
            p(f"{tool}.aggregate.artifact-id={aggregate_project.artifact_id}")
        p("")
        p("# " + ("aggregated " if self._aggregate else "") + "output")

    def _write_source_information(self, project: ProjectInfo) -> None:
        p = self._lines.append
        p("# source information")
        if project.scm_connection is None:
            p("# no scm configured")
            logger.warning("No source information available in buildinfo for rebuilders...")
            return
        p(f"source.scm.uri={project.scm_connection}")
        p(f"source.scm.tag={project.scm_tag or ''}")
        if project.is_snapshot:
            logger.warning(
                "SCM source tag in buildinfo source.scm.tag=%s does not permit "
                "rebuilders reproducible source checkout",
                project.scm_tag,
            )

    def write_reference_environment(self, env: SniffResult) -> None:
        """Minimal mode: environment inferred from reference archives."""
        if env.java_version is None and env.os_name is None:
            return
        self._lines.append("# effective build environment information")
        if env.java_version is not None:
            self._lines.append(f"java.version={env.java_version}")
        if env.os_name is not None:
            self._lines.append(f"os.name={env.os_name}")

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def write_module_artifacts(
        self,
        module: ModuleOutputSet,
        fallback_rules: IgnoreRules | None = None,
    ) -> None:
        """Fingerprint a module's outputs in emission order.

        The module's own ignore rules apply when it has them; otherwise
        *fallback_rules* (the aggregator's) are used.

        Raises
        ------
        ConfigurationError
            If a non-descriptor artifact points to a directory.
        FingerprintError
            If an artifact file cannot be read.
        """
        prefix = OUTPUTS_PREFIX
        if self._aggregate:
            self._module_count += 1
            prefix += f"{self._module_count}."
            self._lines.append("")
            self._lines.append(
                f"{prefix.rstrip('.')}{COORDINATES_SUFFIX}={module.project.coordinates}"
            )

        rules = self.rules_for(module, fallback_rules)

        # Slots keep comments and entries in artifact order while hashing
        # runs on the pool.
        slots: list[str | tuple[str, ArtifactRef]] = []
        n = 0
        for artifact in module.artifacts():
            filename = canonical_filename(artifact)
            if self.is_filtered(artifact, filename, rules):
                slots.append(f"# ignored {filename}")
                self._index[artifact.identity] = IndexedArtifact(artifact=artifact)
                continue
            if not self._is_recordable(artifact, is_main=artifact is module.main):
                continue
            slots.append((f"{prefix}{n}", artifact))
            n += 1

        planned = [slot for slot in slots if isinstance(slot, tuple)]
        digests = iter(self._fingerprint_all([a.file for _, a in planned]))
        for slot in slots:
            if isinstance(slot, str):
                self._lines.append(slot)
                continue
            entry_prefix, artifact = slot
            self._append_entry(
                entry_prefix,
                artifact.group_id,
                canonical_filename(artifact),
                next(digests),
            )
            self._index[artifact.identity] = IndexedArtifact(
                artifact=artifact, prefix=entry_prefix
            )

    @staticmethod
    def rules_for(
        module: ModuleOutputSet, fallback_rules: IgnoreRules | None = None
    ) -> IgnoreRules:
        """The module's own ignore rules, else *fallback_rules*."""
        if module.ignore_rules is not None:
            return module.ignore_rules
        return fallback_rules or IgnoreRules()

    @staticmethod
    def is_filtered(artifact: ArtifactRef, filename: str, rules: IgnoreRules) -> bool:
        """Signatures, javadoc (when configured) and ignore globs are never recorded."""
        if artifact.extension.endswith(SIGNATURE_SUFFIX):
            return True
        if rules.ignore_javadoc and artifact.classifier == JAVADOC_CLASSIFIER:
            return True
        return rules.is_ignored(artifact.group_id, filename)

    @staticmethod
    def _is_recordable(artifact: ArtifactRef, *, is_main: bool = False) -> bool:
        file = artifact.file
        if file is None:
            if is_main:
                logger.debug("No main artifact file for %s", artifact)
            else:
                logger.warning("Ignoring artifact %s because it has no file", artifact)
            return False
        if file.is_dir():
            if artifact.is_descriptor:
                return False
            # seen with a distribution module keeping a jar packaging while
            # skipping the jar plugin
            raise ConfigurationError(
                f"Artifact {artifact} points to a directory: {file}. "
                "Packaging should be 'pom'?"
            )
        if not file.is_file():
            logger.warning(
                "Ignoring artifact %s because it points to inexistent %s", artifact, file
            )
            return False
        return True

    def _fingerprint_all(self, paths: list[Path]) -> list[Fingerprint]:
        if self._hash_workers == 1 or len(paths) < 2:
            return [fingerprint(path) for path in paths]
        with ThreadPoolExecutor(max_workers=self._hash_workers) as pool:
            return list(pool.map(fingerprint, paths))

    def write_file(
        self,
        prefix: str,
        group_id: str,
        file: Path,
        filename: str | None = None,
    ) -> RecordEntry:
        """Fingerprint *file* and append it under *prefix*.

        *filename* defaults to the file's own name, which for files fetched
        from a repository is already the canonical filename.
        """
        return self._append_entry(prefix, group_id, filename or file.name, fingerprint(file))

    def _append_entry(
        self, prefix: str, group_id: str, filename: str, digest: Fingerprint
    ) -> RecordEntry:
        entry = RecordEntry(
            prefix=prefix,
            group_id=group_id,
            filename=filename,
            length=digest.length,
            sha512=digest.sha512,
        )
        self._lines.append("")
        self._lines.extend(entry.lines())
        self._entries.append(entry)
        return entry

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def finalize(self) -> ArtifactIndex:
        """Artifact -> prefix mapping (``None`` prefix for ignored artifacts)."""
        return ArtifactIndex(entries=list(self._index.values()))

    def render(self) -> str:
        return "\n".join(self._lines) + "\n"

    def write(self, path: Path) -> Path:
        """Flush the staged record to *path* in a single write."""
        write_atomically(path, self.render())
        logger.debug("Wrote %d record entries to %s", len(self._entries), path)
        return path
