"""Tests for the filesystem workspace store."""

import os
import sys
from unittest.mock import patch

import pytest

from conftest import write_note
from kbcurator.errors import NotFoundError, ValidationError, WorkspaceIOError
from kbcurator.models import CategoryPath
from kbcurator.vault.workspace import FsWorkspace


class TestLoadNote:
    def test_loads_title_content_and_folder_category(self, workspace_root):
        note = FsWorkspace(workspace_root).load_note("inbox/idea.md")
        assert note.path == "inbox/idea.md"
        assert note.title == "Agent Idea"
        assert note.content.startswith("# Agent Idea")
        assert str(note.category) == "inbox"

    def test_header_category_takes_precedence(self, workspace_root):
        write_note(workspace_root, "inbox/tagged.md", "---\ncategory: Product\n---\n\nBody")
        note = FsWorkspace(workspace_root).load_note("inbox/tagged.md")
        assert str(note.category) == "Product"

    def test_root_note_uncategorized(self, workspace_root):
        write_note(workspace_root, "loose.md", "plain")
        note = FsWorkspace(workspace_root).load_note("loose.md")
        assert note.category is None
        assert note.title == "loose"

    @pytest.mark.parametrize("raw", ["/inbox/idea.md", "./inbox/idea.md", "inbox\\idea.md"])
    def test_path_is_normalized(self, workspace_root, raw):
        note = FsWorkspace(workspace_root).load_note(raw)
        assert note.path == "inbox/idea.md"

    def test_missing_note_raises_not_found(self, workspace_root):
        with pytest.raises(NotFoundError):
            FsWorkspace(workspace_root).load_note("inbox/missing.md")

    def test_directory_raises_io_error(self, workspace_root):
        with pytest.raises(WorkspaceIOError):
            FsWorkspace(workspace_root).load_note("Product")

    def test_undecodable_file_raises_io_error(self, workspace_root):
        (workspace_root / "binary.md").write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(WorkspaceIOError):
            FsWorkspace(workspace_root).load_note("binary.md")

    def test_parent_traversal_rejected(self, workspace_root):
        (workspace_root.parent / "secret.md").write_text("outside")
        with pytest.raises(ValidationError):
            FsWorkspace(workspace_root).load_note("../secret.md")

    def test_inner_dotdot_that_stays_inside_is_allowed(self, workspace_root):
        note = FsWorkspace(workspace_root).load_note("AI/../inbox/idea.md")
        assert note.title == "Agent Idea"
        assert note.path == "inbox/idea.md"

    def test_empty_path_rejected(self, workspace_root):
        with pytest.raises(ValidationError):
            FsWorkspace(workspace_root).load_note("")

    def test_byte_order_mark_does_not_hide_header(self, workspace_root):
        path = workspace_root / "inbox" / "bom.md"
        path.write_bytes("\ufeff---\ncategory: Old\n---\n\n# Bom\n".encode())
        note = FsWorkspace(workspace_root).load_note("inbox/bom.md")
        assert str(note.category) == "Old"
        assert note.frontmatter == {"category": "Old"}
        assert note.title == "Bom"

    def test_crlf_content_preserved(self, workspace_root):
        (workspace_root / "win.md").write_bytes(b"# Win\r\n\r\nline\r\n")
        note = FsWorkspace(workspace_root).load_note("win.md")
        assert note.title == "Win"
        assert note.content == "# Win\r\n\r\nline\r\n"


class TestListCategories:
    def test_lists_all_directories_including_parents(self, tmp_path):
        (tmp_path / "AI" / "Agents").mkdir(parents=True)
        (tmp_path / "Product").mkdir()
        categories = FsWorkspace(tmp_path).list_categories()
        assert categories == {
            CategoryPath.from_raw("AI"),
            CategoryPath.from_raw("AI/Agents"),
            CategoryPath.from_raw("Product"),
        }

    def test_empty_workspace(self, tmp_path):
        assert FsWorkspace(tmp_path).list_categories() == set()

    def test_files_are_not_categories(self, workspace_root):
        categories = {str(c) for c in FsWorkspace(workspace_root).list_categories()}
        assert categories == {"inbox", "AI", "AI/Agents", "Product"}

    def test_exclude_patterns_skip_subtrees(self, workspace_root):
        (workspace_root / ".obsidian" / "plugins").mkdir(parents=True)
        (workspace_root / "Archive" / "2024").mkdir(parents=True)
        workspace = FsWorkspace(workspace_root, exclude_patterns=[".*", "Archive"])
        categories = {str(c) for c in workspace.list_categories()}
        assert categories == {"inbox", "AI", "AI/Agents", "Product"}

    def test_whitespace_only_directory_skipped(self, tmp_path):
        (tmp_path / " " / "nested").mkdir(parents=True)
        (tmp_path / "AI").mkdir()
        categories = FsWorkspace(tmp_path).list_categories()
        assert categories == {CategoryPath.from_raw("AI")}

    def test_missing_root_raises_io_error(self, tmp_path):
        with pytest.raises(WorkspaceIOError):
            FsWorkspace(tmp_path / "nope").list_categories()


class TestApplyCategoryChange:
    def test_moves_and_sets_header(self, workspace_root):
        workspace = FsWorkspace(workspace_root)
        updated = workspace.apply_category_change("inbox/idea.md", CategoryPath.from_raw("AI/Ideas"))

        new_file = workspace_root / "AI" / "Ideas" / "idea.md"
        assert new_file.exists()
        assert not (workspace_root / "inbox" / "idea.md").exists()
        assert new_file.read_text().startswith("---\ncategory: AI/Ideas\n---\n\n# Agent Idea")
        assert updated.path == "AI/Ideas/idea.md"
        assert str(updated.category) == "AI/Ideas"
        assert updated.title == "Agent Idea"

    def test_other_header_keys_and_body_preserved(self, workspace_root):
        workspace = FsWorkspace(workspace_root)
        before = workspace.load_note("AI/Agents/planner.md")
        updated = workspace.apply_category_change(
            "AI/Agents/planner.md", CategoryPath.from_raw("Product")
        )
        assert updated.frontmatter == {"category": "Product", "source": "web"}
        assert updated.content == before.content

    def test_same_location_rewrites_without_deleting(self, workspace_root):
        write_note(workspace_root, "AI/untagged.md", "# Untagged\n")
        workspace = FsWorkspace(workspace_root)
        updated = workspace.apply_category_change("AI/untagged.md", CategoryPath.from_raw("AI"))
        path = workspace_root / "AI" / "untagged.md"
        assert path.exists()
        assert path.read_text() == "---\ncategory: AI\n---\n\n# Untagged\n"
        assert updated.path == "AI/untagged.md"

    def test_move_to_root(self, workspace_root):
        workspace = FsWorkspace(workspace_root)
        updated = workspace.apply_category_change("inbox/idea.md", CategoryPath.root())
        assert (workspace_root / "idea.md").exists()
        assert not (workspace_root / "inbox" / "idea.md").exists()
        assert updated.path == "idea.md"
        assert updated.category is None

    def test_byte_order_mark_header_is_replaced_not_duplicated(self, workspace_root):
        (workspace_root / "inbox" / "bom.md").write_bytes(
            "\ufeff---\ncategory: Old\n---\n\nbody\n".encode()
        )
        FsWorkspace(workspace_root).apply_category_change(
            "inbox/bom.md", CategoryPath.from_raw("New")
        )
        moved = (workspace_root / "New" / "bom.md").read_text(encoding="utf-8")
        assert moved == "---\ncategory: New\n---\n\nbody\n"

    def test_existing_destination_is_not_overwritten(self, workspace_root):
        write_note(workspace_root, "AI/idea.md", "B unrelated\n")
        with pytest.raises(WorkspaceIOError, match="already exists"):
            FsWorkspace(workspace_root).apply_category_change(
                "inbox/idea.md", CategoryPath.from_raw("AI")
            )
        assert (workspace_root / "AI" / "idea.md").read_text() == "B unrelated\n"
        assert (workspace_root / "inbox" / "idea.md").exists()

    def test_dot_segments_do_not_split_header_and_folder(self, workspace_root):
        updated = FsWorkspace(workspace_root).apply_category_change(
            "inbox/idea.md", CategoryPath.from_raw("AI/./Ideas")
        )
        assert updated.path == "AI/Ideas/idea.md"
        assert updated.frontmatter["category"] == "AI/Ideas"

    def test_missing_note_raises_not_found(self, workspace_root):
        with pytest.raises(NotFoundError):
            FsWorkspace(workspace_root).apply_category_change(
                "inbox/missing.md", CategoryPath.from_raw("AI")
            )

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_symlinked_category_outside_workspace_rejected(self, workspace_root, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (workspace_root / "Linked").symlink_to(outside, target_is_directory=True)
        with pytest.raises(ValidationError):
            FsWorkspace(workspace_root).apply_category_change(
                "inbox/idea.md", CategoryPath.from_raw("Linked")
            )
        assert (workspace_root / "inbox" / "idea.md").exists()
        assert list(outside.iterdir()) == []

    def test_failed_unlink_leaves_both_files(self, workspace_root):
        workspace = FsWorkspace(workspace_root)
        with (
            patch("pathlib.Path.unlink", side_effect=PermissionError("denied")),
            pytest.raises(WorkspaceIOError, match="both files exist"),
        ):
            workspace.apply_category_change("inbox/idea.md", CategoryPath.from_raw("AI/Ideas"))
        assert (workspace_root / "inbox" / "idea.md").exists()
        assert (workspace_root / "AI" / "Ideas" / "idea.md").exists()

    def test_failed_write_keeps_original(self, workspace_root):
        workspace = FsWorkspace(workspace_root)
        with (
            patch("kbcurator.vault.workspace.os.replace", side_effect=OSError("disk full")),
            pytest.raises(WorkspaceIOError),
        ):
            workspace.apply_category_change("inbox/idea.md", CategoryPath.from_raw("AI/Ideas"))
        assert (workspace_root / "inbox" / "idea.md").exists()
        assert not (workspace_root / "AI" / "Ideas" / "idea.md").exists()
        # temp file cleaned up
        assert list((workspace_root / "AI" / "Ideas").iterdir()) == []

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_mode_preserved(self, workspace_root):
        source = workspace_root / "inbox" / "idea.md"
        os.chmod(source, 0o644)
        FsWorkspace(workspace_root).apply_category_change(
            "inbox/idea.md", CategoryPath.from_raw("AI/Ideas")
        )
        moved = workspace_root / "AI" / "Ideas" / "idea.md"
        assert moved.stat().st_mode & 0o777 == 0o644
