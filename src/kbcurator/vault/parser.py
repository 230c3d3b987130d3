"""Markdown parser for workspace notes."""

from pathlib import PurePosixPath

from kbcurator.models import CategoryPath, Note
from kbcurator.vault.notefile import parse_note_file


def parse_markdown(path: str, content: str) -> Note:
    """Parse a markdown file with an optional header block.

    Args:
        path: Workspace-relative POSIX path (used for title and category fallback).
        content: The raw file text.

    Returns:
        A Note with title and category derived from header, body and path.
    """
    parsed = parse_note_file(content)

    return Note(
        path=path,
        title=extract_title(path, parsed.body),
        content=parsed.body,
        category=derive_category(path, parsed.header),
        frontmatter=dict(parsed.header),
    )


def extract_title(path: str, body: str) -> str:
    """Extract the note title from the first H1 heading, else the filename."""
    for line in body.split("\n"):
        line = line.lstrip()
        if line.startswith("# "):
            return line[2:].strip() or PurePosixPath(path).stem

    return PurePosixPath(path).stem


def derive_category(path: str, header: dict[str, str]) -> CategoryPath | None:
    """Resolve a note's category.

    Priority:
    1. Non-blank ``category`` header value
    2. Containing directory relative to the workspace root
    3. None for notes at the root
    """
    from_header = header.get("category", "")
    if from_header.strip():
        return CategoryPath.from_raw(from_header)

    parent = PurePosixPath(path).parent.as_posix()
    if parent in (".", ""):
        return None
    return CategoryPath.from_raw(parent)
