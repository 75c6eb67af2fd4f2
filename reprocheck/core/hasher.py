"""Digest helpers for build output fingerprints.

Fingerprints are always SHA-512 over the raw file bytes, read in bounded
chunks so large archives never sit in memory.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import NamedTuple

CHUNK_SIZE = 64 * 1024
SHA512_EMPTY = hashlib.sha512(b"").hexdigest()


class FingerprintError(OSError):
    """Raised when a file cannot be streamed for fingerprinting."""


class Fingerprint(NamedTuple):
    """Byte length and SHA-512 hex digest of one file."""

    length: int
    sha512: str


def sha512_hex(data: bytes) -> str:
    """Return the SHA-512 hex digest of raw bytes."""
    return hashlib.sha512(data).hexdigest()


def fingerprint(path: Path) -> Fingerprint:
    """Stream *path* and return its length and SHA-512.

    Raises ``FingerprintError`` if the file cannot be opened or read.
    """
    digest = hashlib.sha512()
    length = 0
    try:
        with open(path, "rb") as fh:
            while chunk := fh.read(CHUNK_SIZE):
                digest.update(chunk)
                length += len(chunk)
    except OSError as exc:
        raise FingerprintError(f"Error processing file {path}: {exc}") from exc
    return Fingerprint(length, digest.hexdigest())
