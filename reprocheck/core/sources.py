"""Reference sources — where reference artifacts are fetched from.

Source boundary
---------------
The resolver depends only on the ``ReferenceSource`` protocol: resolve an
artifact to a local file, raise ``ArtifactNotFoundError`` when the source
does not have it, and ``ReferenceTransportError`` for anything else.

Two implementations are provided:

1. **LocalRepositorySource**: a directory in Maven 2 repository layout
   (``file:`` URLs and plain paths).
2. **HttpRepositorySource**: a remote repository over HTTP(S), backed by
   an ``httpx.Client``. Downloads are cached under a local directory.

Reference repositories are selected with ``id``, ``url`` or ``id::url``
(see :func:`parse_reference_repo`).
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx

from reprocheck.core.naming import repository_path
from reprocheck.core.recorder import ConfigurationError
from reprocheck.models.artifacts import ArtifactRef

logger = logging.getLogger(__name__)

DEFAULT_REPO_ID = "reference"


class ArtifactNotFoundError(LookupError):
    """Raised when the reference source does not hold the artifact."""


class ReferenceTransportError(RuntimeError):
    """Raised for any reference source failure other than not-found."""


@runtime_checkable
class ReferenceSource(Protocol):
    """Resolves artifacts against a reference repository."""

    repo_id: str

    def resolve(self, artifact: ArtifactRef) -> Path:
        """Return a local file holding the reference copy of *artifact*."""
        ...


class LocalRepositorySource:
    """Reference artifacts read from a Maven 2 layout directory.

    Parameters
    ----------
    base_dir:
        Repository root, e.g. ``~/.m2/repository`` or an unpacked mirror.
    """

    def __init__(self, base_dir: Path, repo_id: str = DEFAULT_REPO_ID) -> None:
        self._base = Path(base_dir)
        self.repo_id = repo_id

    def resolve(self, artifact: ArtifactRef) -> Path:
        path = self._base / repository_path(artifact)
        if path.is_file():
            return path
        if path.exists():
            raise ReferenceTransportError(f"{path} is not a regular file")
        raise ArtifactNotFoundError(f"{artifact} not found in {self.repo_id} ({self._base})")

    def __repr__(self) -> str:
        return f"<LocalRepositorySource repo_id={self.repo_id!r} base={str(self._base)!r}>"


class HttpRepositorySource:
    """Reference artifacts downloaded from a remote HTTP(S) repository.

    Parameters
    ----------
    url:
        Repository root URL, e.g. ``https://repo.maven.apache.org/maven2``.
    cache_dir:
        Where downloads land, mirroring the repository layout.
    timeout:
        Per-request timeout in seconds.
    client:
        Pre-configured ``httpx.Client`` (auth, proxies, tests). Created
        and owned by the source when omitted.
    """

    def __init__(
        self,
        url: str,
        *,
        repo_id: str = DEFAULT_REPO_ID,
        cache_dir: Path | None = None,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self.repo_id = repo_id
        self._owns_cache = cache_dir is None
        self._cache = Path(cache_dir) if cache_dir else Path(tempfile.mkdtemp(prefix="reprocheck-"))
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def resolve(self, artifact: ArtifactRef) -> Path:
        relative = repository_path(artifact)
        url = f"{self._url}/{relative}"
        dest = self._cache / relative
        logger.debug("GET %s", url)
        try:
            with self._client.stream("GET", url) as resp:
                if resp.status_code == 404:
                    raise ArtifactNotFoundError(f"{artifact} not found in {self.repo_id} ({url})")
                resp.raise_for_status()
                dest.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=dest.parent, suffix=".part")
                try:
                    with os.fdopen(fd, "wb") as fh:
                        for chunk in resp.iter_bytes():
                            fh.write(chunk)
                    os.replace(tmp_name, dest)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
        except httpx.HTTPStatusError as exc:
            raise ReferenceTransportError(
                f"Error resolving reference artifact {artifact}: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise ReferenceTransportError(
                f"Error resolving reference artifact {artifact}: {exc}"
            ) from exc
        except OSError as exc:
            raise ReferenceTransportError(
                f"Error storing reference artifact {artifact}: {exc}"
            ) from exc
        return dest

    def close(self) -> None:
        """Close an owned client and delete an owned temporary cache."""
        if self._owns_client:
            self._client.close()
        if self._owns_cache:
            shutil.rmtree(self._cache, ignore_errors=True)

    def __enter__(self) -> HttpRepositorySource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<HttpRepositorySource repo_id={self.repo_id!r} url={self._url!r}>"


def source_for_url(
    repo_id: str,
    url: str,
    *,
    cache_dir: Path | None = None,
    timeout: float = 60.0,
) -> ReferenceSource:
    """Pick the source implementation matching *url*'s scheme."""
    if url.startswith(("http://", "https://")):
        return HttpRepositorySource(url, repo_id=repo_id, cache_dir=cache_dir, timeout=timeout)
    if url.startswith("file://"):
        return LocalRepositorySource(Path(url.removeprefix("file://")), repo_id)
    if url.startswith("file:"):
        return LocalRepositorySource(Path(url.removeprefix("file:")), repo_id)
    return LocalRepositorySource(Path(url), repo_id)


def parse_reference_repo(
    value: str,
    repositories: dict[str, str],
    *,
    cache_dir: Path | None = None,
    timeout: float = 60.0,
) -> ReferenceSource:
    """Build a source from ``id``, ``url`` or ``id::url``.

    A bare ``id`` must name one of the configured *repositories*; a bare
    ``url`` gets the default ``reference`` id.

    Raises
    ------
    ConfigurationError
        If *value* is a bare id with no configured repository.
    """
    if "::" in value:
        repo_id, _, url = value.partition("::")
        return source_for_url(repo_id, url, cache_dir=cache_dir, timeout=timeout)
    if ":" in value:
        return source_for_url(DEFAULT_REPO_ID, value, cache_dir=cache_dir, timeout=timeout)
    url = repositories.get(value)
    if url is None:
        raise ConfigurationError(f"Could not find repository with id = {value}")
    return source_for_url(value, url, cache_dir=cache_dir, timeout=timeout)
