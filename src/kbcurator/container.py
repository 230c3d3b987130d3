"""Composition root: wires settings into concrete adapters and use cases."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kbcurator.categorization.agent import CategorizationAgent
from kbcurator.categorization.categorizer import LLMCategorizer
from kbcurator.categorization.use_case import CategorizeNoteUseCase
from kbcurator.config import Settings
from kbcurator.llm.client import LLMClient
from kbcurator.ports import CategorizationPort, WorkspacePort
from kbcurator.vault.workspace import FsWorkspace

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Everything a categorization run needs, built once per invocation."""

    settings: Settings
    workspace: WorkspacePort
    llm_client: LLMClient
    categorizer: CategorizationPort
    use_case: CategorizeNoteUseCase
    agent: CategorizationAgent


def build_container(
    settings: Settings,
    workspace: WorkspacePort | None = None,
    categorizer: CategorizationPort | None = None,
    llm_client: LLMClient | None = None,
) -> Container:
    """Build the object graph from settings.

    Any port can be passed in to replace the default adapter, e.g. in tests.
    """
    if workspace is None:
        workspace = FsWorkspace(settings.workspace_root, exclude_patterns=settings.exclude_patterns)
    if llm_client is None:
        llm_client = LLMClient(settings)
    if categorizer is None:
        categorizer = LLMCategorizer(llm_client)
    logger.debug(
        "Container: workspace_root=%s provider=%s model=%s",
        settings.workspace_root,
        settings.llm_provider,
        llm_client.model_name,
    )
    return Container(
        settings=settings,
        workspace=workspace,
        llm_client=llm_client,
        categorizer=categorizer,
        use_case=CategorizeNoteUseCase(workspace, categorizer),
        agent=CategorizationAgent(workspace, llm_client, max_steps=settings.agent_max_steps),
    )
