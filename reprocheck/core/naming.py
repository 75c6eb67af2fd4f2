"""Canonical artifact naming.

The canonical filename depends only on an artifact's identity, never on
the name a module gave its local file, so local and reference outputs can
be matched by content identity.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reprocheck.models.artifacts import ArtifactRef


def canonical_filename(artifact: ArtifactRef) -> str:
    """``artifactId-baseVersion[-classifier][.extension]``."""
    name = f"{artifact.artifact_id}-{artifact.base_version}"
    if artifact.classifier:
        name += f"-{artifact.classifier}"
    if artifact.extension:
        name += f".{artifact.extension}"
    return name


def repository_path(artifact: ArtifactRef) -> str:
    """Relative path of *artifact* in a Maven 2 layout repository.

    Layout: {group with dots as slashes}/{artifactId}/{baseVersion}/{canonical filename}
    """
    return "/".join(
        (
            artifact.group_id.replace(".", "/"),
            artifact.artifact_id,
            artifact.base_version,
            canonical_filename(artifact),
        )
    )
