"""Categorize one note: load, list categories, ask, and move if needed."""

from __future__ import annotations

import logging
from pathlib import Path

from kbcurator.models import CategorizeNoteResult
from kbcurator.ports import CategorizationPort, WorkspacePort

logger = logging.getLogger(__name__)


class CategorizeNoteUseCase:
    """Runs the fixed categorization workflow for a single note.

    Steps run strictly in order and any error aborts the run unchanged:

    1. Load the note from the workspace
    2. List the available categories
    3. Ask the categorizer for a suggestion
    4. Apply the change when the suggestion differs from the current category
    """

    def __init__(self, workspace: WorkspacePort, categorizer: CategorizationPort) -> None:
        self.workspace = workspace
        self.categorizer = categorizer

    def execute(self, relative_path: str | Path, dry_run: bool = False) -> CategorizeNoteResult:
        """Categorize the note at ``relative_path``.

        Args:
            relative_path: Workspace-relative path, e.g. ``inbox/idea.md``.
            dry_run: Report the suggestion without writing anything.
        """
        logger.info("Loading note: %s", relative_path)
        original_note = self.workspace.load_note(str(relative_path))
        logger.debug("Loaded note: %r", original_note.title)

        available = sorted(self.workspace.list_categories(), key=str)
        logger.debug("Found %d existing categories", len(available))

        logger.info("Analyzing note content...")
        decision = self.categorizer.suggest_category(original_note, available)

        current = str(original_note.category) if original_note.category else ""
        suggested = str(decision.suggested_category)

        if current == suggested or dry_run:
            if current == suggested:
                logger.info("Note already in best category: %s", suggested or "(root)")
            else:
                logger.info("Dry run: would move %s -> %s", current or "(root)", suggested)
            return CategorizeNoteResult(
                original_note=original_note,
                updated_note=original_note,
                was_moved=False,
                reasoning=decision.reasoning,
                suggested_category=decision.suggested_category,
                confidence=decision.confidence,
                dry_run=dry_run,
            )

        logger.info("Moving note from %r to %r", current or "(root)", suggested)
        updated_note = self.workspace.apply_category_change(
            original_note.path, decision.suggested_category
        )
        logger.info("Categorized %s as %s", updated_note.path, suggested)

        return CategorizeNoteResult(
            original_note=original_note,
            updated_note=updated_note,
            was_moved=True,
            reasoning=decision.reasoning,
            suggested_category=decision.suggested_category,
            confidence=decision.confidence,
        )
