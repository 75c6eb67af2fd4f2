"""reprocheck: reproducible-build verification for Maven-style artifacts.

Records the size and SHA-512 of every output of a build in a
``.buildinfo`` record, then checks a rebuild against the artifacts
published in a reference repository and writes a ``.buildcompare``
report with ready-to-run ``diffoscope`` commands for each mismatch.
"""

__version__ = "0.1.0"
__description__ = "Record build outputs and verify they reproduce a reference build"

from reprocheck.core.verifier import ReproducibilityVerifier
from reprocheck.cli.app import app as cli

__all__ = ["ReproducibilityVerifier", "cli", "__version__"]
