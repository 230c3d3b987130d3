"""Filesystem-backed workspace of markdown notes."""

from __future__ import annotations

import contextlib
import fnmatch
import logging
import os
import posixpath
import shutil
import tempfile
from pathlib import Path, PurePosixPath
from typing import NoReturn

from kbcurator.errors import NotFoundError, ValidationError, WorkspaceIOError
from kbcurator.models import CategoryPath, Note
from kbcurator.vault.notefile import parse_note_file, serialize_note_file
from kbcurator.vault.parser import parse_markdown

logger = logging.getLogger(__name__)


class FsWorkspace:
    """A directory tree where folders are categories and ``.md`` files are notes."""

    def __init__(
        self,
        workspace_root: Path,
        exclude_patterns: list[str] | None = None,
    ) -> None:
        """Initialize the workspace.

        Args:
            workspace_root: Root directory of the workspace.
            exclude_patterns: fnmatch patterns for directories that are not categories.
                Matched against the relative POSIX path and against the directory name.
        """
        self.workspace_root = Path(workspace_root)
        self.exclude_patterns = exclude_patterns or []

    def _normalize(self, relative_path: str | Path) -> str:
        """Turn user input into a workspace-relative POSIX path."""
        normalized = str(relative_path).replace("\\", "/").lstrip("/")
        posix = posixpath.normpath(normalized) if normalized else ""
        if posix in (".", ""):
            raise ValidationError(f"Note path cannot be empty: {relative_path!r}")
        return posix

    def _resolve(self, relative_path: str) -> Path:
        """Join a relative path onto the root, rejecting anything that escapes it."""
        root = self.workspace_root.resolve()
        if not (root / relative_path).resolve().is_relative_to(root):
            raise ValidationError(f"Path escapes the workspace: {relative_path}")
        return self.workspace_root / relative_path

    def _should_exclude(self, relative_path: str) -> bool:
        name = PurePosixPath(relative_path).name
        return any(
            fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(name, pattern)
            for pattern in self.exclude_patterns
        )

    def _read_text(self, full_path: Path, relative_path: str) -> str:
        try:
            # utf-8-sig drops a leading BOM; newline="" keeps CRLF bodies intact
            with open(full_path, encoding="utf-8-sig", newline="") as f:
                return f.read()
        except FileNotFoundError as e:
            raise NotFoundError(f"Note not found: {relative_path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise WorkspaceIOError(f"Failed to read {relative_path}: {e}") from e

    def load_note(self, relative_path: str | Path) -> Note:
        """Read and parse a single note.

        Args:
            relative_path: Path to the note, relative to the workspace root.

        Returns:
            Parsed Note, freshly read from disk.
        """
        rel = self._normalize(relative_path)
        content = self._read_text(self._resolve(rel), rel)
        return parse_markdown(rel, content)

    def list_categories(self) -> set[CategoryPath]:
        """List every directory under the root as a category.

        Intermediate directories count too, so ``AI/Agents`` also yields ``AI``.
        """

        def _raise(error: OSError) -> NoReturn:
            raise WorkspaceIOError(
                f"Failed to read workspace {self.workspace_root}: {error}"
            ) from error

        categories: set[CategoryPath] = set()
        for dirpath, dirnames, _filenames in os.walk(self.workspace_root, onerror=_raise):
            kept = []
            for name in sorted(dirnames):
                relative = (Path(dirpath) / name).relative_to(self.workspace_root).as_posix()
                if self._should_exclude(relative):
                    continue
                try:
                    category = CategoryPath.from_raw(relative)
                except ValidationError:
                    logger.debug("Skipping directory that is not a valid category: %r", relative)
                    continue
                kept.append(name)
                categories.add(category)
            # Prune in place so os.walk skips excluded subtrees
            dirnames[:] = kept

        logger.debug("Found %d categories under %s", len(categories), self.workspace_root)
        return categories

    def apply_category_change(self, note_path: str | Path, new_category: CategoryPath) -> Note:
        """Set the note's ``category`` header and move it into the category folder.

        The new file is written before the old one is removed. If removal fails both
        copies stay on disk and WorkspaceIOError is raised.

        Returns:
            The note re-loaded from its new location.
        """
        rel = self._normalize(note_path)
        old_path = self._resolve(rel)

        parsed = parse_note_file(self._read_text(old_path, rel))
        parsed.header["category"] = str(new_category)
        new_content = serialize_note_file(parsed)

        new_rel = posixpath.join(*new_category.parts, PurePosixPath(rel).name)
        new_path = self._resolve(new_rel)
        moving = new_rel != rel and not _same_file(old_path, new_path)

        if moving and new_path.exists():
            raise WorkspaceIOError(f"Cannot move {rel}: {new_rel} already exists")

        try:
            new_path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(new_path, new_content, mode_from=old_path)
        except OSError as e:
            raise WorkspaceIOError(f"Failed to write {new_rel}: {e}") from e

        if moving:
            try:
                old_path.unlink()
            except OSError as e:
                raise WorkspaceIOError(
                    f"Wrote {new_rel} but could not remove {rel}; both files exist: {e}"
                ) from e
            logger.info("Moved %s -> %s", rel, new_rel)
        else:
            logger.info("Updated category header of %s in place", rel)

        return self.load_note(new_rel)


def _same_file(a: Path, b: Path) -> bool:
    """True when both paths exist and point at the same file (e.g. case-insensitive FS)."""
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def _atomic_write(path: Path, content: str, mode_from: Path | None = None) -> None:
    """Write text via a temp file in the same directory and os.replace."""
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        if mode_from is not None and mode_from.exists():
            shutil.copymode(mode_from, tmp_path)
        os.replace(tmp_path, str(path))
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
