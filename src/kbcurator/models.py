"""Domain models for kb-curator."""

from __future__ import annotations

import re
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from kbcurator.errors import ValidationError

_SLASH_RUN = re.compile(r"/+")


@dataclass(frozen=True)
class CategoryPath:
    """A folder-shaped category such as ``AI/Agents``.

    Build instances with :meth:`from_raw` or :meth:`root`. The stored value is
    always normalized, so equality and hashing follow the canonical string.
    """

    value: str = ""

    @classmethod
    def from_raw(cls, raw: str) -> CategoryPath:
        """Normalize a raw category string.

        Surrounding whitespace is trimmed, backslashes become forward slashes,
        runs of slashes collapse to one, leading/trailing slashes are dropped
        and ``.`` segments are removed.

        Raises:
            ValidationError: If nothing is left after normalization, or if the
                path contains a ``..`` segment.
        """
        collapsed = _SLASH_RUN.sub("/", raw.strip().replace("\\", "/")).strip("/")
        segments = [s for s in collapsed.split("/") if s not in ("", ".")]
        if ".." in segments:
            raise ValidationError(f"Category path cannot contain '..': {raw!r}")
        normalized = "/".join(segments)
        if not normalized:
            raise ValidationError(f"Category path cannot be empty: {raw!r}")
        return cls(normalized)

    @classmethod
    def root(cls) -> CategoryPath:
        """The workspace root, i.e. no category."""
        return cls("")

    def is_root(self) -> bool:
        return self.value == ""

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(self.value.split("/")) if self.value else ()

    def __str__(self) -> str:
        return self.value


class Note(BaseModel):
    """A note loaded from the workspace.

    ``path`` is the workspace-relative POSIX path and doubles as the note id.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    title: str
    content: str
    category: CategoryPath | None = None
    frontmatter: dict[str, str] = Field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.path


class CategorizationDecision(BaseModel):
    """A category suggested by the oracle."""

    model_config = ConfigDict(frozen=True)

    suggested_category: CategoryPath
    reasoning: str
    confidence: float | None = Field(default=None, ge=0, le=1)


class CategorizeNoteResult(BaseModel):
    """Outcome of categorizing a single note."""

    original_note: Note
    updated_note: Note
    was_moved: bool
    reasoning: str
    suggested_category: CategoryPath
    confidence: float | None = None
    dry_run: bool = False
