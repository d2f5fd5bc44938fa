# src/aichat/core/tree.py
from typing import Dict, Iterable, List
from pathlib import PurePosixPath

SKIPPED_MARK = " (skipped)"


def generate_project_tree(file_paths: Iterable[str], root_name: str, skipped: Iterable[str] = ()) -> str:
    """Renders relative paths as a tree. Paths in `skipped` are marked."""
    skipped = set(skipped)
    tree_dict: Dict = {}
    for path in sorted(set(file_paths) | skipped):
        current_level = tree_dict
        for part in PurePosixPath(path).parts:
            current_level = current_level.setdefault(part, {})

    lines: List[str] = [f"{root_name}/"]

    def _generate_lines_recursive(subtree: Dict, prefix: str, parent: str):
        entries = sorted(subtree.items())
        for i, (name, children) in enumerate(entries):
            is_last = i == len(entries) - 1
            connector = "└── " if is_last else "├── "
            full_path = f"{parent}{name}"
            mark = SKIPPED_MARK if full_path in skipped else ""
            lines.append(f"{prefix}{connector}{name}{mark}")

            if children:
                new_prefix = prefix + ("    " if is_last else "│   ")
                _generate_lines_recursive(children, new_prefix, f"{full_path}/")

    _generate_lines_recursive(tree_dict, "", "")
    return "\n".join(lines) + "\n"
