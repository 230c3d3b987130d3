"""Tool-calling categorization agent.

Instead of the fixed load -> list -> decide -> apply sequence, the model chooses
which workspace tool to call next. Each turn it replies with JSON, either a tool
call or a final summary. The loop is capped at ``max_steps`` model turns.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from kbcurator.errors import AgentStepLimitError, CuratorError, OracleError
from kbcurator.llm.client import LLMClient, parse_json_response
from kbcurator.models import CategoryPath, Note
from kbcurator.ports import WorkspacePort

logger = logging.getLogger(__name__)

AGENT_PROMPT = """You are an AI note categorization assistant working inside a personal knowledge base of Markdown files.
Categories are folder paths like 'AI/Agents' or 'Product/Ideas'.

Your task is to decide the best category for a single note. You can call these tools:
- load_note: {"path": "<workspace-relative path>"} -> the note's title, content and current category
- list_categories: {} -> all existing categories
- apply_category_change: {"path": "<workspace-relative path>", "new_category": "<category path>"} -> moves the note and updates its category

Rules:
- Prefer existing categories when possible.
- Only create a new category if no existing one fits reasonably well.
- Do not move a note that is already in the best category.

Reply with ONLY one JSON object per turn, either a tool call:
{"tool": "load_note", "arguments": {"path": "inbox/idea.md"}}
or, when you are done, a short summary of what you did:
{"final": "Moved inbox/idea.md to AI/Ideas because ..."}"""


class AgentState(StrEnum):
    """States of the agent loop."""

    AWAITING_DECISION = "awaiting_decision"
    TOOL_INVOKED = "tool_invoked"
    COMPLETED = "completed"


class LoadNoteArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1)


class ListCategoriesArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ApplyCategoryChangeArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1)
    new_category: str = Field(min_length=1)


class ToolCall(BaseModel):
    tool: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class FinalAnswer(BaseModel):
    final: str


@dataclass
class AgentStep:
    """One tool invocation and what it returned."""

    tool: str
    arguments: dict[str, Any]
    result: dict[str, Any]
    is_error: bool = False


@dataclass
class AgentResult:
    """Outcome of an agent run."""

    summary: str
    state: AgentState
    steps: list[AgentStep] = field(default_factory=list)
    updated_note: Note | None = None


def _note_payload(note: Note) -> dict[str, Any]:
    return {
        "id": note.id,
        "path": note.path,
        "title": note.title,
        "content": note.content,
        "category": str(note.category) if note.category else None,
    }


class CategorizationAgent:
    """Bounded tool-calling loop over the workspace port."""

    def __init__(self, workspace: WorkspacePort, llm: LLMClient, max_steps: int = 8) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.workspace = workspace
        self.llm = llm
        self.max_steps = max_steps
        self._updated_note: Note | None = None
        self._tools: dict[str, tuple[type[BaseModel], Callable[[Any], dict[str, Any]]]] = {
            "load_note": (LoadNoteArgs, self._load_note),
            "list_categories": (ListCategoriesArgs, self._list_categories),
            "apply_category_change": (ApplyCategoryChangeArgs, self._apply_category_change),
        }

    def _load_note(self, args: LoadNoteArgs) -> dict[str, Any]:
        return _note_payload(self.workspace.load_note(args.path))

    def _list_categories(self, _args: ListCategoriesArgs) -> dict[str, Any]:
        categories = sorted(self.workspace.list_categories(), key=str)
        return {"categories": [str(c) for c in categories]}

    def _apply_category_change(self, args: ApplyCategoryChangeArgs) -> dict[str, Any]:
        category = CategoryPath.from_raw(args.new_category)
        updated = self.workspace.apply_category_change(args.path, category)
        self._updated_note = updated
        payload = _note_payload(updated)
        del payload["content"]
        return payload

    def _parse_action(self, raw: str) -> ToolCall | FinalAnswer:
        try:
            data = parse_json_response(raw)
        except json.JSONDecodeError as e:
            raise OracleError(f"Agent reply was not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise OracleError(f"Agent reply must be a JSON object, got {data!r}")
        try:
            if "final" in data:
                return FinalAnswer.model_validate(data)
            if "tool" in data:
                return ToolCall.model_validate(data)
        except PydanticValidationError as e:
            raise OracleError(f"Invalid agent reply: {e}") from e
        raise OracleError(f"Agent reply has neither 'tool' nor 'final': {data!r}")

    def _invoke(self, call: ToolCall) -> AgentStep:
        """Validate arguments and run one tool; tool errors are returned to the model."""
        if call.tool not in self._tools:
            known = ", ".join(self._tools)
            return AgentStep(
                call.tool,
                call.arguments,
                {"error": f"Unknown tool '{call.tool}'. Available tools: {known}"},
                is_error=True,
            )

        args_model, handler = self._tools[call.tool]
        try:
            args = args_model.model_validate(call.arguments)
            result = handler(args)
        except PydanticValidationError as e:
            logger.warning("Invalid arguments for %s: %s", call.tool, e)
            return AgentStep(
                call.tool,
                call.arguments,
                {"error": f"Invalid arguments: {e}"},
                is_error=True,
            )
        except CuratorError as e:
            logger.warning("Tool %s failed: %s", call.tool, e)
            return AgentStep(call.tool, call.arguments, {"error": str(e)}, is_error=True)

        return AgentStep(call.tool, call.arguments, result)

    def run(self, relative_path: str) -> AgentResult:
        """Let the model categorize the note at ``relative_path``.

        Raises:
            OracleError: If the model cannot be reached or replies with garbage.
            AgentStepLimitError: If no final answer arrives within ``max_steps`` turns.
        """
        self._updated_note = None
        messages = [
            {
                "role": "user",
                "content": f'The target note is at workspace-relative path: "{relative_path}".\n'
                "Use the tools to inspect it and apply any category change you think is "
                "appropriate, then reply with your final summary.",
            }
        ]
        steps: list[AgentStep] = []
        state = AgentState.AWAITING_DECISION

        for step_number in range(1, self.max_steps + 1):
            logger.debug("Agent step %d/%d: %s", step_number, self.max_steps, state)
            try:
                raw = self.llm.converse(AGENT_PROMPT, messages)
            except RuntimeError as e:
                raise OracleError(f"Agent call failed: {e}") from e
            messages.append({"role": "assistant", "content": raw})

            action = self._parse_action(raw)
            if isinstance(action, FinalAnswer):
                state = AgentState.COMPLETED
                logger.info("Agent finished after %d step(s)", step_number)
                return AgentResult(
                    summary=action.final,
                    state=state,
                    steps=steps,
                    updated_note=self._updated_note,
                )

            state = AgentState.TOOL_INVOKED
            logger.info("Agent called %s(%s)", action.tool, action.arguments)
            step = self._invoke(action)
            steps.append(step)
            messages.append(
                {
                    "role": "user",
                    "content": f"Tool result for {step.tool}:\n{json.dumps(step.result)}",
                }
            )
            state = AgentState.AWAITING_DECISION

        raise AgentStepLimitError(
            f"Agent stopped after {self.max_steps} steps without a final answer"
        )
