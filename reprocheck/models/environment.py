"""Build environment models: the local environment and sniffed reference hints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

UNIX = "Unix"
WINDOWS = "Windows"


class BuildEnvironment(BaseModel):
    """The environment producing the local build.

    Full values go into diagnostic records; reproducible records only keep
    the major JDK version and the OS family.
    """

    model_config = ConfigDict(frozen=True)

    java_version: str = "unknown"
    java_vendor: str = "unknown"
    os_name: str = "unknown"
    os_arch: str = ""
    os_version: str = ""
    line_separator: str = "\n"
    build_tool_version: str = ""
    toolchain_jdk: str | None = None  # raw "java -version" output of a JDK toolchain

    @property
    def os_family(self) -> str:
        """Two-bucket OS classification by line separator convention."""
        return UNIX if self.line_separator == "\n" else WINDOWS


class SniffResult(BaseModel):
    """Environment inferred from a compiled archive's embedded metadata."""

    model_config = ConfigDict(frozen=True)

    java_version: str | None = None  # e.g. "17 (from MANIFEST.MF Build-Jdk-Spec)"
    os_name: str | None = None  # e.g. "Unix (from pom.properties newline)"

    @property
    def expected_line_separator(self) -> str | None:
        if self.os_name is None:
            return None
        return "\r\n" if self.os_name.startswith(WINDOWS) else "\n"
