"""Workspace store and note file parsing."""

from kbcurator.vault.notefile import ParsedNoteFile, parse_note_file, serialize_note_file
from kbcurator.vault.parser import parse_markdown
from kbcurator.vault.workspace import FsWorkspace

__all__ = [
    "FsWorkspace",
    "ParsedNoteFile",
    "parse_markdown",
    "parse_note_file",
    "serialize_note_file",
]
