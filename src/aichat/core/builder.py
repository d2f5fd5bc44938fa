# src/aichat/core/builder.py
import logging
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Tuple

from aichat.config import (
    MANIFEST_NAMES,
    MAX_DEPTH,
    MAX_FILE_SIZE,
    MAX_TOTAL_SIZE,
    README_PREFIX,
    SUPPORTED_EXTENSIONS,
)
from aichat.core.formatter import format_file_size, serialize
from aichat.core.ignore import ExclusionRules
from aichat.core.scanner import DirectoryLister, ProjectScanner
from aichat.models import ContextSnapshot, FileRecord

logger = logging.getLogger(__name__)


def sort_key(rel_path: str) -> Tuple[int, str]:
    """
    Most informative first: package manifests, then readme files, then
    everything else by relative path.
    """
    name = PurePosixPath(rel_path).name.lower()
    if name in MANIFEST_NAMES:
        rank = 0
    elif name.startswith(README_PREFIX):
        rank = 1
    else:
        rank = 2
    return rank, rel_path


class ContextBuilder:
    """
    Collects a bounded, ordered excerpt of a project's files.

    Nothing here raises to the caller: unreadable files become placeholders,
    unreadable directories are skipped and files that would push the total
    over `max_total_size` are listed in `skipped_paths`.
    """

    def __init__(
        self,
        max_file_size: int = MAX_FILE_SIZE,
        max_total_size: int = MAX_TOTAL_SIZE,
        max_depth: int = MAX_DEPTH,
        rules: Optional[ExclusionRules] = None,
        extensions: Iterable[str] = SUPPORTED_EXTENSIONS,
        lister: Optional[DirectoryLister] = None,
    ):
        self.max_file_size = max_file_size
        self.max_total_size = max_total_size
        self.max_depth = max_depth
        self.rules = rules if rules is not None else ExclusionRules()
        self.extensions = frozenset(extensions)
        self.lister = lister

    def _scanner(self, working_dir: Path) -> ProjectScanner:
        return ProjectScanner(working_dir, self.rules, self.extensions, self.lister)

    def read_file(self, path: Path) -> str:
        """Full text of `path`, or a placeholder naming why it was not read."""
        try:
            size = path.stat().st_size
            if size > self.max_file_size:
                logger.debug("Not reading %s: %d bytes over the per-file limit", path, size)
                return f"[File too large: {format_file_size(size)}]"
            # Decoded from bytes so line endings are kept as they are on disk
            return path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Could not read %s: %s", path, e)
            return f"[Error reading file: {e}]"

    def discover(self, working_dir: Path) -> List[str]:
        """Eligible relative paths in inclusion order."""
        try:
            paths = self._scanner(working_dir).scan(self.max_depth)
        except (OSError, ValueError) as e:
            logger.debug("Scan of %s failed: %s", working_dir, e)
            return []
        return sorted(paths, key=sort_key)

    def build(self, working_dir) -> ContextSnapshot:
        working_dir = Path(working_dir)
        label = working_dir.resolve().name or str(working_dir)

        files: List[FileRecord] = []
        skipped: List[str] = []
        total = 0

        for rel_path in self.discover(working_dir):
            record = FileRecord.from_content(rel_path, self.read_file(working_dir / rel_path))
            if self.max_total_size <= 0 or total + record.size_bytes > self.max_total_size:
                logger.debug("Skipping %s: total size limit reached", rel_path)
                skipped.append(rel_path)
                continue
            files.append(record)
            total += record.size_bytes

        return ContextSnapshot(
            working_directory_label=label,
            files=tuple(files),
            total_bytes=total,
            skipped_paths=tuple(skipped),
        )

    def has_eligible_files(self, working_dir, shallow: bool = True) -> bool:
        try:
            return self._scanner(Path(working_dir)).has_eligible_files(shallow=shallow)
        except (OSError, ValueError) as e:
            logger.debug("Existence probe of %s failed: %s", working_dir, e)
            return False


def build_and_serialize_context(working_dir, builder: Optional[ContextBuilder] = None) -> str:
    builder = builder if builder is not None else ContextBuilder()
    return serialize(builder.build(working_dir))
