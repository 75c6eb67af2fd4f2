"""Local build environment detection.

Captures the JDK, OS and build-tool information written into record
headers. The JDK is probed with ``java -version`` (``$JAVA_HOME/bin/java``
first, then ``PATH``); a missing JDK is not an error, the version is simply
recorded as unknown.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import shutil
import subprocess
from pathlib import Path

from reprocheck.models.environment import BuildEnvironment

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r'version "([^"]+)"')
_VENDOR_RE = re.compile(r"^(\S+)", re.MULTILINE)


def extract_java_major_version(java_version: str) -> str:
    """Reduce a full JDK version to its major component.

    ``1.8.0_202`` -> ``8``, ``17.0.2`` -> ``17``, ``21-ea`` -> ``21``.
    """
    if java_version.startswith("1."):
        java_version = java_version[2:]
    index = java_version.find(".")
    if index < 0:
        index = java_version.find("-")
    return java_version if index < 0 else java_version[:index]


def parse_java_version(output: str) -> str | None:
    """Pull the quoted version out of `java -version` output."""
    match = _VERSION_RE.search(output)
    return match.group(1) if match else None


def find_java(java_home: Path | None = None) -> str | None:
    """Locate a ``java`` executable, preferring *java_home*/``$JAVA_HOME``."""
    home = java_home or (Path(os.environ["JAVA_HOME"]) if os.environ.get("JAVA_HOME") else None)
    if home is not None:
        candidate = home / "bin" / ("java.exe" if os.name == "nt" else "java")
        if candidate.is_file():
            return str(candidate)
    return shutil.which("java")


def java_version_output(java: str) -> str:
    """Run ``java -version`` and return its (stderr) output lines joined by ``:``."""
    try:
        proc = subprocess.run(
            [java, "-version"],
            capture_output=True,
            text=True,
            timeout=30,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        return str(exc)
    lines = (proc.stderr or proc.stdout).splitlines()
    return ":".join(lines) or "unable to detect..."


def detect_environment(
    *,
    build_tool_version: str = "",
    java_home: Path | None = None,
    toolchain_java: str | None = None,
) -> BuildEnvironment:
    """Snapshot the current build environment.

    Parameters
    ----------
    build_tool_version:
        Version of the orchestrating build tool, recorded in full mode only.
    java_home:
        JDK running the build; defaults to ``$JAVA_HOME`` then ``PATH``.
    toolchain_java:
        ``java`` executable of a separate JDK toolchain, if the build used one.
    """
    java_version = "unknown"
    java_vendor = "unknown"
    java = find_java(java_home)
    if java is not None:
        output = java_version_output(java)
        java_version = parse_java_version(output) or java_version
        vendor = _VENDOR_RE.search(output)
        if vendor:
            java_vendor = vendor.group(1)
    else:
        logger.debug("No java executable found; recording java.version=unknown")

    toolchain_jdk = java_version_output(toolchain_java) if toolchain_java else None

    return BuildEnvironment(
        java_version=java_version,
        java_vendor=java_vendor,
        os_name=platform.system() or "unknown",
        os_arch=platform.machine(),
        os_version=platform.release(),
        line_separator=os.linesep,
        build_tool_version=build_tool_version,
        toolchain_jdk=toolchain_jdk,
    )
