# src/aichat/core/ignore.py
from pathlib import PurePath
from typing import Iterable, Optional, Union

import pathspec

from aichat.config import DEFAULT_EXCLUDE_PATTERNS


class ExclusionRules:
    """
    Decides which paths are pruned from a scan.

    Two kinds of pattern are supported:
    1. Patterns containing '*' are gitignore-style globs, matched against the
       path relative to the working directory ("*.log", "docs/*.md").
    2. Anything else matches when it occurs anywhere in the relative path,
       so "build" prunes build/, mybuild/ and src/builder.js alike.
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None):
        if patterns is None:
            patterns = DEFAULT_EXCLUDE_PATTERNS
        self.patterns = [p.strip() for p in patterns if p and p.strip()]
        self.substrings = tuple(p for p in self.patterns if "*" not in p)
        self.spec = pathspec.PathSpec.from_lines(
            "gitignore", [p for p in self.patterns if "*" in p]
        )

    def is_excluded(self, rel_path: Union[str, PurePath]) -> bool:
        rel = PurePath(rel_path).as_posix()
        if rel in ("", "."):
            return False

        if any(s in rel for s in self.substrings):
            return True

        return self.spec.match_file(rel)

    def __repr__(self) -> str:
        return f"ExclusionRules({self.patterns!r})"
