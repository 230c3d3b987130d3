"""LLM-backed category suggestions for a single note."""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from kbcurator.errors import OracleError, ValidationError
from kbcurator.llm.client import LLMClient
from kbcurator.models import CategorizationDecision, CategoryPath, Note

logger = logging.getLogger(__name__)

CATEGORIZATION_PROMPT = """You are an AI note categorization assistant for a personal knowledge base.
Notes are Markdown files and categories are folder paths.

Return ONLY valid JSON with these fields:
{
  "category": "the suggested category path, like 'AI/Agents' or 'Product/Ideas'",
  "reasoning": "brief explanation of why this category was chosen",
  "confidence": 0.0-1.0
}

Rules:
- Prefer existing categories when they fit well.
- Only suggest a new category if no existing one is appropriate.
- Use hierarchical paths like 'AI/Agents' or 'Product/Ideas'.
- Keep category names concise and descriptive.
- If the note already sits in the best category, return that category unchanged."""


class CategorizationResponse(BaseModel):
    """Schema for the model's JSON answer."""

    category: str = Field(min_length=1)
    reasoning: str = ""
    confidence: float | None = Field(default=None, ge=0, le=1)


def build_user_prompt(note: Note, available_categories: list[CategoryPath]) -> str:
    """Describe the note and the existing categories for the model."""
    if available_categories:
        category_list = "\n".join(f"  - {c}" for c in available_categories)
    else:
        category_list = "  (no existing categories)"
    current = str(note.category) if note.category else "(uncategorized)"

    return f"""## Note Details
**Title:** {note.title}
**Current Category:** {current}

**Content:**
{note.content}

## Available Categories
{category_list}"""


class LLMCategorizer:
    """Asks an LLM which category a note belongs to."""

    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm

    def suggest_category(
        self, note: Note, available_categories: list[CategoryPath]
    ) -> CategorizationDecision:
        """Suggest the best category for a note.

        Raises:
            OracleError: On provider failure, unparseable JSON or an invalid answer.
        """
        user_prompt = build_user_prompt(note, available_categories)
        try:
            data = self.llm.chat_json(CATEGORIZATION_PROMPT, user_prompt)
        except json.JSONDecodeError as e:
            raise OracleError(f"Categorization response was not valid JSON: {e}") from e
        except RuntimeError as e:
            raise OracleError(f"Categorization call failed: {e}") from e

        if not isinstance(data, dict):
            raise OracleError(f"Categorization response must be a JSON object, got {data!r}")
        try:
            response = CategorizationResponse.model_validate(data)
            suggested = CategoryPath.from_raw(response.category)
        except (PydanticValidationError, ValidationError) as e:
            raise OracleError(f"Invalid categorization response: {e}") from e

        logger.debug("Categorization result: %s", json.dumps(data, indent=2))
        return CategorizationDecision(
            suggested_category=suggested,
            reasoning=response.reasoning,
            confidence=response.confidence,
        )
