"""Reading and writing the note file format.

A note may start with a flat header block::

    ---
    key: value
    ---

    body...

Only flat ``key: value`` pairs are supported; this is not a YAML parser.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DELIMITER = "---"


@dataclass
class ParsedNoteFile:
    """Header mapping and body of a note file."""

    header: dict[str, str] = field(default_factory=dict)
    body: str = ""


def _split_lines(raw: str) -> list[str]:
    """Split on newlines only, keeping line endings so the body can be rejoined exactly."""
    pieces = raw.split("\n")
    lines = [piece + "\n" for piece in pieces[:-1]]
    if pieces[-1]:
        lines.append(pieces[-1])
    return lines


def _strip_line_ending(line: str) -> str:
    return line.rstrip("\r\n")


def parse_note_file(raw: str) -> ParsedNoteFile:
    """Split raw note text into header and body.

    The first line must be exactly ``---`` to open a header. Header lines are
    split on the first colon; lines without a colon are skipped. A header that
    is never closed is not a header, and the whole text is returned as body.
    One blank line directly after the closing delimiter is dropped, matching
    what :func:`serialize_note_file` writes.
    """
    lines = _split_lines(raw)
    if not lines or _strip_line_ending(lines[0]) != DELIMITER:
        return ParsedNoteFile(body=raw)

    header: dict[str, str] = {}
    for i in range(1, len(lines)):
        line = _strip_line_ending(lines[i])
        if line == DELIMITER:
            body_start = i + 1
            if body_start < len(lines) and _strip_line_ending(lines[body_start]) == "":
                body_start += 1
            return ParsedNoteFile(header=header, body="".join(lines[body_start:]))
        if not line.strip():
            continue
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            logger.debug("Skipping malformed header line: %r", line)
            continue
        header[key] = value.strip()

    logger.debug("Header block is not closed, treating whole file as body")
    return ParsedNoteFile(body=raw)


def serialize_note_file(parsed: ParsedNoteFile) -> str:
    """Render a parsed note back to text.

    An empty header writes the body verbatim; no header block is added.
    """
    if not parsed.header:
        return parsed.body
    lines = [DELIMITER]
    lines.extend(f"{key}: {value}" for key, value in parsed.header.items())
    lines.append(DELIMITER)
    lines.append("")
    return "\n".join(lines) + "\n" + parsed.body
