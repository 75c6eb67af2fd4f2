"""Verification options and ignore rules."""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict


@functools.lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into a regex.

    ``*`` and ``?`` stay within one path segment, ``**`` crosses segments,
    ``{a,b}`` is an alternation and ``[!x]`` a negated class.
    """
    out: list[str] = []
    in_group = False
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "{" and not in_group:
            in_group = True
            out.append("(?:")
        elif c == "}" and in_group:
            in_group = False
            out.append(")")
        elif c == "," and in_group:
            out.append("|")
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end < 0:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1 : end].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end + 1
                continue
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out), re.DOTALL)


def matches_any(patterns: Iterable[str], path: str) -> bool:
    """Return True if *path* matches at least one glob in *patterns*."""
    return any(_compile_glob(p).fullmatch(path) for p in patterns)


class IgnoreRules(BaseModel):
    """Which artifacts are left out of a record.

    Patterns are globs matched against ``<groupId>/<canonical filename>``,
    for example ``*/*.xml``.
    """

    model_config = ConfigDict(frozen=True)

    patterns: list[str] = []
    ignore_javadoc: bool = True

    def is_ignored(self, group_id: str, filename: str) -> bool:
        return matches_any(self.patterns, f"{group_id}/{filename}")


class VerifyOptions(BaseModel):
    """Per-invocation options for recording and comparing a build.

    Built from :class:`reprocheck.config.ReprocheckSettings` by the CLI, or
    directly by an orchestrator embedding reprocheck.
    """

    model_config = ConfigDict(frozen=True)

    reproducible: bool = False
    ignore_rules: IgnoreRules = IgnoreRules()
    detect_skip: bool = True
    skip_modules: list[str] = []  # globs on <groupId>/<artifactId>
    fail_on_difference: bool = True
    aggregate_only: bool = False
    build_tool: str = "mvn"
    reference_dir_name: str = "reference"
    hash_workers: int = 1
    fetch_workers: int = 1
