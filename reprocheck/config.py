"""Runtime settings for reprocheck.

Defaults for the reference repository, recording and comparison options,
loaded by pydantic-settings from REPROCHECK_* variables and a .env file.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from reprocheck.models.config import IgnoreRules, VerifyOptions

MAVEN_CENTRAL = "https://repo.maven.apache.org/maven2"


class ReprocheckSettings(BaseSettings):
    """reprocheck settings.

    Every field maps to a REPROCHECK_<FIELD> variable; list and dict fields
    take JSON. Command-line options win over these values.

    Examples
    --------
    Override via environment::

        export REPROCHECK_REFERENCE_REPO=central
        export REPROCHECK_LOG_LEVEL=DEBUG
        export REPROCHECK_IGNORE='["*/*.xml"]'

    Or via .env file::

        REPROCHECK_REPRODUCIBLE=true
        REPROCHECK_FAIL_ON_DIFFERENCE=false
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REPROCHECK_",
        env_file_encoding="utf-8",
    )

    log_level: str = "INFO"

    # Reference repository: id, url, or id::url
    reference_repo: str = "central"
    repositories: dict[str, str] = {"central": MAVEN_CENTRAL}
    reference_dir_name: str = "reference"
    download_cache: Path | None = None
    http_timeout_seconds: float = 60.0

    # Recording
    reproducible: bool = False
    ignore_javadoc: bool = True
    ignore: list[str] = []
    detect_skip: bool = True
    skip_modules: list[str] = []
    build_tool: str = "mvn"

    # Comparison
    fail_on_difference: bool = True
    aggregate_only: bool = False

    # Bounded worker pools
    hash_workers: int = 1
    fetch_workers: int = 4

    def verify_options(self, **overrides: object) -> VerifyOptions:
        """Per-invocation options derived from these settings."""
        values: dict[str, object] = {
            "reproducible": self.reproducible,
            "ignore_rules": IgnoreRules(
                patterns=list(self.ignore), ignore_javadoc=self.ignore_javadoc
            ),
            "detect_skip": self.detect_skip,
            "skip_modules": list(self.skip_modules),
            "fail_on_difference": self.fail_on_difference,
            "aggregate_only": self.aggregate_only,
            "build_tool": self.build_tool,
            "reference_dir_name": self.reference_dir_name,
            "hash_workers": self.hash_workers,
            "fetch_workers": self.fetch_workers,
        }
        values.update(overrides)
        return VerifyOptions(**values)


# Module-level singleton: import as `from reprocheck.config import settings`
settings = ReprocheckSettings()
