"""Workflow service - storage plus trigger activation."""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from ..core.exceptions import WorkflowNotFoundError
from ..engine.graph_compiler import compile

if TYPE_CHECKING:
    from ..engine.node_registry import NodeRegistry
    from ..engine.types import WorkflowStructure
    from ..storage import StoredWorkflow, WorkflowStore
    from .trigger_registry import TriggerRegistry

logger = logging.getLogger(__name__)


class WorkflowService:
    """Service for workflow operations."""

    def __init__(
        self,
        workflow_store: WorkflowStore,
        trigger_registry: TriggerRegistry,
        node_registry: NodeRegistry,
    ) -> None:
        self._workflow_store = workflow_store
        self._trigger_registry = trigger_registry
        self._node_registry = node_registry
        self._credentials: dict[str, dict[str, dict[str, Any]]] = {}

    async def save(self, workflow_id: str, structure: WorkflowStructure) -> StoredWorkflow:
        """
        Validate and store a workflow.

        An active workflow has its triggers re-registered from the new structure.

        Raises:
            GraphStructureError: If the graph cannot be compiled
            UnknownNodeTypeError: If a node type is not registered
        """
        compile(structure.nodes, structure.connections, self._node_registry)
        stored = self._workflow_store.save(workflow_id, structure)
        if stored.active:
            await self._trigger_registry.unregister_workflow_triggers(workflow_id)
            await self._trigger_registry.register_workflow_triggers(
                workflow_id, structure.nodes, self._credentials.get(workflow_id)
            )
        return stored

    def get(self, workflow_id: str) -> StoredWorkflow:
        stored = self._workflow_store.get(workflow_id)
        if stored is None:
            raise WorkflowNotFoundError(workflow_id)
        return stored

    def list(self) -> list[StoredWorkflow]:
        return self._workflow_store.list()

    async def delete(self, workflow_id: str) -> None:
        """Delete a workflow and drop its triggers."""
        if not self._workflow_store.delete(workflow_id):
            raise WorkflowNotFoundError(workflow_id)
        self._credentials.pop(workflow_id, None)
        await self._trigger_registry.unregister_workflow_triggers(workflow_id)

    async def activate(
        self,
        workflow_id: str,
        credentials: dict[str, dict[str, Any]] | None = None,
    ) -> list[str]:
        """
        Register every trigger node of a workflow.

        Args:
            workflow_id: Workflow to activate
            credentials: Trigger credentials keyed by node id

        Returns:
            IDs of the registered trigger nodes
        """
        stored = self.get(workflow_id)
        if credentials is not None:
            self._credentials[workflow_id] = credentials

        await self._trigger_registry.unregister_workflow_triggers(workflow_id)
        registered = await self._trigger_registry.register_workflow_triggers(
            workflow_id, stored.structure.nodes, self._credentials.get(workflow_id)
        )
        self._workflow_store.set_active(workflow_id, True)
        logger.info("Activated workflow %s with %d trigger(s)", workflow_id, len(registered))
        return registered

    async def deactivate(self, workflow_id: str) -> int:
        """Unregister a workflow's triggers and mark it inactive."""
        self.get(workflow_id)
        removed = await self._trigger_registry.unregister_workflow_triggers(workflow_id)
        self._workflow_store.set_active(workflow_id, False)
        logger.info("Deactivated workflow %s", workflow_id)
        return removed
