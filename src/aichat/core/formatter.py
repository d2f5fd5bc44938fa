# src/aichat/core/formatter.py
from typing import List

from aichat.models import ContextSnapshot

PROMPT_INSTRUCTION = "Based on the project files above, please answer this question: "
PROMPT_FOOTER = (
    "Please consider the code structure, dependencies, and project setup when "
    "providing your response. If the question is about the project specifically, "
    "reference the relevant files."
)


def format_file_size(num_bytes: int) -> str:
    """Human readable size: '512 B', '1.5 KB', '2.0 MB'."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def summarize(snapshot: ContextSnapshot) -> str:
    label = snapshot.working_directory_label
    types = ", ".join(f"{ext}({count})" for ext, count in snapshot.file_types().items())
    summary = (
        f"Found {len(snapshot.files)} files ({format_file_size(snapshot.total_bytes)}) "
        f"in {label}. File types: {types}."
    )
    if snapshot.skipped_paths:
        summary += f" Skipped {len(snapshot.skipped_paths)} files due to size limits."
    return summary


def serialize(snapshot: ContextSnapshot) -> str:
    """Renders the snapshot as one prompt-ready text block."""
    parts: List[str] = [
        "\n=== PROJECT CONTEXT ===\n",
        f"Working Directory: {snapshot.working_directory_label}\n",
        f"{summarize(snapshot)}\n\n",
    ]
    for record in snapshot.files:
        parts.append(f"=== FILE: {record.rel_path} ===\n")
        parts.append(record.content)
        parts.append("\n\n")
    parts.append("=== END CONTEXT ===\n\n")
    return "".join(parts)


def build_augmented_prompt(message: str, snapshot: ContextSnapshot) -> str:
    return f"{serialize(snapshot)}{PROMPT_INSTRUCTION}{message}\n\n{PROMPT_FOOTER}"
