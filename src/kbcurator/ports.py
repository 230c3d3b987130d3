"""Interfaces the categorization flow depends on."""

from typing import Protocol

from kbcurator.models import CategorizationDecision, CategoryPath, Note


class WorkspacePort(Protocol):
    """Protocol for note storage."""

    def load_note(self, relative_path: str) -> Note:
        """Load a note by workspace-relative path."""
        ...

    def list_categories(self) -> set[CategoryPath]:
        """List existing categories (folders) in the workspace."""
        ...

    def apply_category_change(self, note_path: str, new_category: CategoryPath) -> Note:
        """Update the note's category header, move it, and return the re-loaded note."""
        ...


class CategorizationPort(Protocol):
    """Protocol for the component that decides a note's category."""

    def suggest_category(
        self, note: Note, available_categories: list[CategoryPath]
    ) -> CategorizationDecision:
        """Suggest the best category for a note.

        ``available_categories`` may be empty, in which case any reasonable new
        category may be suggested.
        """
        ...
