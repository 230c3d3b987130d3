"""Shared test fixtures."""

from pathlib import Path

import pytest

from kbcurator.config import Settings


def write_note(root: Path, relative_path: str, content: str) -> Path:
    """Create a note file (and its folders) under the workspace root."""
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def workspace_root(tmp_path):
    """A small workspace with an inbox note, a categorized note and an empty category."""
    root = tmp_path / "notes"
    write_note(root, "inbox/idea.md", "# Agent Idea\n\nUse tool calling for note triage.\n")
    write_note(
        root,
        "AI/Agents/planner.md",
        "---\ncategory: AI/Agents\nsource: web\n---\n\n# Planner\n\nPlanning agents.\n",
    )
    (root / "Product").mkdir(parents=True)
    return root


@pytest.fixture
def settings(workspace_root):
    return Settings(
        _env_file=None,
        workspace_root=workspace_root,
        anthropic_api_key="test-key",
        openai_api_key=None,
    )
