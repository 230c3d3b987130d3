"""Categorization oracle, orchestrator and agent."""

from kbcurator.categorization.agent import AgentResult, AgentState, CategorizationAgent
from kbcurator.categorization.categorizer import LLMCategorizer
from kbcurator.categorization.use_case import CategorizeNoteUseCase

__all__ = [
    "AgentResult",
    "AgentState",
    "CategorizationAgent",
    "CategorizeNoteUseCase",
    "LLMCategorizer",
]
