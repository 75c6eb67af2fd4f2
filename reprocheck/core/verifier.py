"""Reproducibility verifier — the central coordinator for one build.

The verifier wires the FingerprintRecorder, ReferenceResolver and
Comparator together for the modules of a :class:`BuildManifest`:

* single-module builds get one record with ``outputs.<n>`` prefixes;
* multi-module builds get one aggregate record, owned by the last module
  that is not skipped, and copied to the root build directory;
* modules that skip install/deploy (or match ``skip_modules``) are never
  fingerprinted.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from reprocheck.core.comparator import Comparator
from reprocheck.core.environment import detect_environment
from reprocheck.core.properties import RecordWriteError
from reprocheck.core.recorder import ConfigurationError, FingerprintRecorder
from reprocheck.core.resolver import ReferenceResolver
from reprocheck.core.sources import ReferenceSource
from reprocheck.core.timestamp import has_bad_output_timestamp
from reprocheck.models.artifacts import ModuleOutputSet, ProjectInfo
from reprocheck.models.config import VerifyOptions, matches_any
from reprocheck.models.environment import BuildEnvironment
from reprocheck.models.manifest import BuildManifest
from reprocheck.models.records import RECORD_EXTENSION, REPORT_EXTENSION, ArtifactIndex
from reprocheck.models.reports import VerificationResult

logger = logging.getLogger(__name__)


class ReproducibilityVerifier:
    """Records a build and checks it against a reference build.

    Parameters
    ----------
    manifest:
        The orchestrator's description of the finished build.
    options:
        Recording and comparison options. Uses defaults if not provided.
    environment:
        Local build environment for record headers; detected when omitted.
    """

    def __init__(
        self,
        manifest: BuildManifest,
        options: VerifyOptions | None = None,
        *,
        environment: BuildEnvironment | None = None,
    ) -> None:
        self.manifest = manifest
        self.options = options or VerifyOptions()
        self.environment = environment or detect_environment()
        self._output_sets = manifest.output_sets()

    # ------------------------------------------------------------------
    # Module selection
    # ------------------------------------------------------------------

    def is_skipped(self, module: ModuleOutputSet) -> bool:
        """Configured (``skip_modules``) or detected (install/deploy) skip."""
        coordinates = f"{module.project.group_id}/{module.project.artifact_id}"
        if matches_any(self.options.skip_modules, coordinates):
            return True
        return self.options.detect_skip and module.skips_publication

    @property
    def modules(self) -> list[ModuleOutputSet]:
        """Modules that get fingerprinted, in build order."""
        if self.manifest.is_mono:
            return list(self._output_sets)
        return [m for m in self._output_sets if not self.is_skipped(m)]

    @property
    def last_module(self) -> ModuleOutputSet | None:
        modules = self.modules
        return modules[-1] if modules else None

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(self) -> tuple[Path, ArtifactIndex]:
        """Write the build record (aggregate for multi-module builds).

        Returns the record path and the artifact index.
        """
        has_bad_output_timestamp(self.manifest.output_timestamp)

        if self.manifest.is_mono:
            return self.record_module(self._output_sets[0])

        last = self.last_module
        if last is None:
            raise ConfigurationError("Every module is skipped: nothing to record")

        recorder = self._new_recorder(aggregate=True)
        recorder.write_header(
            self.manifest.root, last.project, reproducible=self.options.reproducible
        )
        for module in self.modules:
            recorder.write_module_artifacts(module, self.options.ignore_rules)

        path = recorder.write(last.project.record_path(RECORD_EXTENSION))
        logger.info("Saved aggregate info on build to %s", path)
        self.copy_aggregate_to_root(path)
        return path, recorder.finalize()

    def record_module(self, module: ModuleOutputSet) -> tuple[Path, ArtifactIndex]:
        """Write a single-module record for *module*."""
        recorder = self._new_recorder(aggregate=False)
        recorder.write_header(module.project, reproducible=self.options.reproducible)
        recorder.write_module_artifacts(module, self.options.ignore_rules)
        path = recorder.write(module.project.record_path(RECORD_EXTENSION))
        logger.info("Saved info on build to %s", path)
        return path, recorder.finalize()

    def _new_recorder(self, *, aggregate: bool) -> FingerprintRecorder:
        return FingerprintRecorder(
            aggregate=aggregate,
            environment=self.environment,
            build_tool=self.options.build_tool,
            hash_workers=self.options.hash_workers,
        )

    def copy_aggregate_to_root(self, path: Path) -> Path | None:
        """Copy an aggregate file to ``<root target>/<root>-<version>.<ext>``."""
        if self.manifest.is_mono:
            return None
        root = self.manifest.root
        extension = path.suffix.lstrip(".")
        dest = root.record_path(extension)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            if Path(path).resolve() != dest.resolve():
                shutil.copyfile(path, dest)
        except OSError as exc:
            raise RecordWriteError(f"Could not copy {path} to {dest}: {exc}") from exc
        logger.info("Aggregate %s copied to %s", extension, dest)
        return dest

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(
        self, source: ReferenceSource, *, enforce: bool = True
    ) -> list[VerificationResult]:
        """Compare the build against *source*.

        Multi-module builds first check each intermediate module on its own
        for early feedback (unless ``aggregate_only``), then the aggregate.
        With *enforce*, the first differing comparison raises
        ``ArtifactsDifferError`` when failing is enabled.
        """
        logger.info("Checking against reference build from %s...", source.repo_id)
        results: list[VerificationResult] = []
        if not self.manifest.is_mono and not self.options.aggregate_only:
            for module in self.modules[:-1]:
                path, index = self.record_module(module)
                results.append(
                    self.check_against_reference(
                        source, path, index, module.project, mono=True, enforce=enforce
                    )
                )

        path, index = self.record()
        owner = self.modules[-1].project
        results.append(
            self.check_against_reference(
                source, path, index, owner, mono=self.manifest.is_mono, enforce=enforce
            )
        )
        return results

    def check_against_reference(
        self,
        source: ReferenceSource,
        record_path: Path,
        index: ArtifactIndex,
        owner: ProjectInfo,
        *,
        mono: bool,
        enforce: bool = True,
    ) -> VerificationResult:
        """Resolve the reference for one record, compare, write the report."""
        root = owner if mono else self.manifest.root
        resolver = ReferenceResolver(
            source,
            root.target_dir / self.options.reference_dir_name,
            fetch_workers=self.options.fetch_workers,
            line_separator=self.environment.line_separator,
        )
        reference = resolver.resolve(owner, index, record_path)

        comparator = self.comparator()
        report = comparator.compare(record_path, reference, index, owner.version)
        report_path = comparator.write_report(
            report, record_path.with_suffix(f".{REPORT_EXTENSION}")
        )
        if not mono:
            self.copy_aggregate_to_root(report_path)

        result = VerificationResult(
            record_path=record_path,
            report_path=report_path,
            reference=reference,
            report=report,
        )
        if enforce:
            self.enforce(result)
        return result

    def comparator(self) -> Comparator:
        return Comparator(
            self.manifest.root.basedir,
            fail_on_difference=self.options.fail_on_difference,
        )

    def enforce(self, result: VerificationResult) -> None:
        """Apply the fail-on-difference policy to *result*."""
        self.comparator().enforce(
            result.report, result.reference.record_path, result.record_path
        )
