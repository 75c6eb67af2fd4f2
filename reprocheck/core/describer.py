"""Build output description — a dry run of recording.

Walks the modules of a manifest with the same skip, ignore and naming
rules the recorder applies, without writing anything.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict

from reprocheck.core.hasher import fingerprint
from reprocheck.core.naming import canonical_filename
from reprocheck.core.recorder import FingerprintRecorder
from reprocheck.core.timestamp import has_bad_output_timestamp, parse_output_timestamp
from reprocheck.core.verifier import ReproducibilityVerifier
from reprocheck.models.artifacts import ArtifactRef, ModuleOutputSet
from reprocheck.models.config import IgnoreRules
from reprocheck.models.description import BuildDescription, OutputDescription, OutputState

logger = logging.getLogger(__name__)

DISABLED = "disabled"


def describe_build(verifier: ReproducibilityVerifier) -> BuildDescription:
    """Describe every declared output of *verifier*'s build.

    Modules are listed in build order, skipped ones included. Outputs
    without a file (e.g. the main artifact of a ``pom`` module) are left
    out.

    Raises
    ------
    ConfigurationError
        If the manifest's output timestamp cannot be parsed.
    FingerprintError
        If a recorded output cannot be read.
    """
    manifest = verifier.manifest
    has_bad_output_timestamp(manifest.output_timestamp)
    timestamp = parse_output_timestamp(manifest.output_timestamp)
    effective = DISABLED
    if timestamp is not None:
        effective = timestamp.isoformat().replace("+00:00", "Z")

    module_sets = manifest.output_sets()
    projects = [m.project for m in module_sets]
    counts = Counter(p.group_id for p in projects)
    group_ids = sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    groups_by_artifact: dict[str, set[str]] = defaultdict(set)
    for project in projects:
        groups_by_artifact[project.artifact_id].add(project.group_id)
    shared = {
        artifact_id: sorted(groups)
        for artifact_id, groups in sorted(groups_by_artifact.items())
        if len(groups) > 1
    }

    outputs: list[OutputDescription] = []
    for module in module_sets:
        outputs.extend(_describe_module(verifier, module))

    return BuildDescription(
        effective_timestamp=effective,
        group_ids=group_ids,
        shared_artifact_ids=shared,
        outputs=outputs,
    )


def _describe_module(
    verifier: ReproducibilityVerifier, module: ModuleOutputSet
) -> list[OutputDescription]:
    skipped = verifier.is_skipped(module)
    rules = FingerprintRecorder.rules_for(module, verifier.options.ignore_rules)
    comparator = verifier.comparator()

    described = []
    for artifact in module.artifacts():
        if artifact.file is None:
            logger.debug("No file for %s", artifact)
            continue
        state = _state(artifact, rules, skipped=skipped)
        build_path = comparator.relative(artifact.file)
        filename = canonical_filename(artifact)

        size = sha512 = None
        if artifact.file.is_file():
            if state is OutputState.RECORDED:
                size, sha512 = fingerprint(artifact.file)
            else:
                size = artifact.file.stat().st_size

        described.append(
            OutputDescription(
                artifact=artifact,
                state=state,
                build_path=build_path,
                repository_filename=None if build_path.endswith(filename) else filename,
                size=size,
                sha512=sha512,
            )
        )
    return described


def _state(artifact: ArtifactRef, rules: IgnoreRules, *, skipped: bool) -> OutputState:
    if skipped:
        return OutputState.NOT_DEPLOYED
    if FingerprintRecorder.is_filtered(artifact, canonical_filename(artifact), rules):
        return OutputState.IGNORED
    return OutputState.RECORDED
