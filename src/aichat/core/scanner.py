# src/aichat/core/scanner.py
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Set, Tuple

from aichat.config import MAX_DEPTH, SHALLOW_DEPTH, SUPPORTED_EXTENSIONS
from aichat.core.ignore import ExclusionRules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirEntry:
    name: str
    path: Path
    is_dir: bool
    is_file: bool


class DirectoryLister(Protocol):
    def list_dir(self, path: Path) -> List[DirEntry]: ...

    def real_path(self, path: Path) -> str: ...


class OsDirectoryLister:
    """Lists directories with os.scandir, following symlinks."""

    def list_dir(self, path: Path) -> List[DirEntry]:
        entries = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    is_dir = entry.is_dir()
                    is_file = entry.is_file()
                except OSError:
                    # Broken symlink or vanished entry
                    continue
                entries.append(DirEntry(entry.name, Path(entry.path), is_dir, is_file))
        return entries

    def real_path(self, path: Path) -> str:
        return os.path.realpath(path)


class ProjectScanner:
    def __init__(
        self,
        root_dir: Path,
        rules: Optional[ExclusionRules] = None,
        extensions: Iterable[str] = SUPPORTED_EXTENSIONS,
        lister: Optional[DirectoryLister] = None,
    ):
        self.root_dir = Path(root_dir)
        self.rules = rules if rules is not None else ExclusionRules()
        self.extensions = frozenset(e.lower() for e in extensions)
        self.lister = lister if lister is not None else OsDirectoryLister()

    def is_supported(self, name: str) -> bool:
        """Allow-listed extension, or any dotfile."""
        return Path(name).suffix.lower() in self.extensions or name.startswith(".")

    def _walk(self, max_depth: int, stop_at_first: bool = False) -> List[str]:
        """
        Depth-first walk with an explicit stack. The root sits at depth 0;
        directories deeper than max_depth are never listed. Excluded entries
        are pruned before descent, so nothing below them is visited.
        """
        found: List[str] = []
        visited: Set[str] = set()
        stack: List[Tuple[Path, int]] = [(self.root_dir, 0)]

        while stack:
            current, depth = stack.pop()
            if depth > max_depth:
                continue

            try:
                real = self.lister.real_path(current)
            except OSError:
                continue
            if real in visited:
                logger.debug("Skipping already visited directory %s", current)
                continue
            visited.add(real)

            try:
                entries = self.lister.list_dir(current)
            except OSError as e:
                logger.debug("Skipping unreadable directory %s: %s", current, e)
                continue

            subdirs = []
            for entry in sorted(entries, key=lambda e: e.name):
                rel_path = entry.path.relative_to(self.root_dir)
                if self.rules.is_excluded(rel_path):
                    continue

                if entry.is_dir:
                    subdirs.append((entry.path, depth + 1))
                elif entry.is_file and self.is_supported(entry.name):
                    found.append(rel_path.as_posix())
                    if stop_at_first:
                        return found

            # Reversed so the stack pops subdirectories in name order
            stack.extend(reversed(subdirs))

        return found

    def scan(self, max_depth: int = MAX_DEPTH) -> List[str]:
        """Returns relative POSIX paths of every eligible file."""
        return self._walk(max_depth)

    def has_eligible_files(self, shallow: bool = True) -> bool:
        depth = SHALLOW_DEPTH if shallow else MAX_DEPTH
        return bool(self._walk(depth, stop_at_first=True))
