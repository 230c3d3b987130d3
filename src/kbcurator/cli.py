"""Command-line interface for categorizing a single note.

Usage:
    kb-curator inbox/idea.md               # categorize and move if needed
    kb-curator --dry-run inbox/idea.md     # show the suggestion only
    kb-curator --agent inbox/idea.md       # let the model drive the tools
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from kbcurator import __version__
from kbcurator.categorization.agent import AgentResult
from kbcurator.config import get_settings
from kbcurator.container import build_container
from kbcurator.errors import CuratorError
from kbcurator.models import CategorizeNoteResult

logger = logging.getLogger("kbcurator.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kb-curator",
        description="Categorize a Markdown note into a folder-based category using an LLM",
    )
    parser.add_argument(
        "note_path",
        nargs="?",
        help="Workspace-relative path of the note, e.g. inbox/idea.md",
    )
    parser.add_argument(
        "--workspace-root",
        type=Path,
        default=None,
        help="Override workspace root (default: KBCURATOR_WORKSPACE_ROOT or ./notes)",
    )
    parser.add_argument(
        "--agent",
        action="store_true",
        help="Let the model call workspace tools itself instead of the fixed workflow",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the suggested category without moving the note",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"kb-curator {__version__}")
    return parser


def format_result(result: CategorizeNoteResult) -> str:
    """Human-readable summary of a categorization run."""
    original = result.original_note
    from_category = str(original.category) if original.category else "(root)"
    lines = [f"Note: {original.title} ({original.path})"]
    if result.was_moved:
        lines.append(f"Moved: {from_category} -> {result.suggested_category}")
        lines.append(f"New path: {result.updated_note.path}")
    elif result.dry_run and str(result.suggested_category) != str(original.category or ""):
        lines.append(f"Suggested: {from_category} -> {result.suggested_category} (dry run)")
    else:
        lines.append(f"Unchanged: {from_category}")
    if result.confidence is not None:
        lines.append(f"Confidence: {result.confidence:.2f}")
    lines.append(f"Reasoning: {result.reasoning}")
    return "\n".join(lines)


def format_agent_result(result: AgentResult) -> str:
    lines = [f"Agent finished after {len(result.steps)} tool call(s)"]
    if result.updated_note is not None:
        lines.append(f"New path: {result.updated_note.path}")
    lines.append(f"Summary: {result.summary}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not args.note_path:
        parser.print_usage(sys.stderr)
        print("Error: missing note path (e.g. kb-curator inbox/idea.md)", file=sys.stderr)
        return 1
    if args.agent and args.dry_run:
        print("Error: --dry-run cannot be combined with --agent", file=sys.stderr)
        return 1

    try:
        settings = get_settings()
        if args.workspace_root is not None:
            settings = settings.model_copy(update={"workspace_root": args.workspace_root})
        if settings.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        if not (args.verbose or settings.debug):
            # SDK request logs are noise at INFO level
            logging.getLogger("httpx").setLevel(logging.WARNING)

        logger.info("Workspace root: %s", settings.workspace_root)
        container = build_container(settings)

        if args.agent:
            agent_result = container.agent.run(args.note_path)
            print(format_agent_result(agent_result))
        else:
            result = container.use_case.execute(args.note_path, dry_run=args.dry_run)
            print(format_result(result))
    except CuratorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
