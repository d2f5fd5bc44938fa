# src/aichat/models.py
import enum
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Tuple


class Relevance(enum.Enum):
    GENERAL_KNOWLEDGE = "general_knowledge"
    PROJECT_SPECIFIC = "project_specific"


@dataclass(frozen=True)
class FileRecord:
    """One file chosen for the prompt. `content` may be a placeholder."""
    rel_path: str
    content: str
    size_bytes: int

    @classmethod
    def from_content(cls, rel_path: str, content: str) -> "FileRecord":
        return cls(rel_path=rel_path, content=content, size_bytes=len(content.encode("utf-8")))

    @property
    def extension(self) -> str:
        return PurePosixPath(self.rel_path).suffix.lower() or "config"


@dataclass(frozen=True)
class ContextSnapshot:
    """Immutable result of one context build, files in inclusion order."""
    working_directory_label: str
    files: Tuple[FileRecord, ...] = ()
    total_bytes: int = 0
    skipped_paths: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.files

    def file_types(self) -> Dict[str, int]:
        """Extension histogram in order of first appearance."""
        counts: Dict[str, int] = {}
        for record in self.files:
            counts[record.extension] = counts.get(record.extension, 0) + 1
        return counts
