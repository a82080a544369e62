"""In-memory workflow storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..core.exceptions import WorkflowNotFoundError
from ..engine.types import WorkflowStructure


@dataclass
class StoredWorkflow:
    """A workflow structure plus its bookkeeping fields."""

    id: str
    structure: WorkflowStructure
    active: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def name(self) -> str:
        return self.structure.name or self.id


class WorkflowStore:
    """
    In-memory workflow storage.

    Stands in for the persistence collaborator that hands the execution
    service a workflow's nodes and connections.
    """

    def __init__(self) -> None:
        self._workflows: dict[str, StoredWorkflow] = {}

    def save(self, workflow_id: str, structure: WorkflowStructure) -> StoredWorkflow:
        """Create or replace a workflow, keeping its active flag and creation time."""
        existing = self._workflows.get(workflow_id)
        if existing:
            existing.structure = structure
            existing.updated_at = datetime.now()
            return existing

        stored = StoredWorkflow(id=workflow_id, structure=structure)
        self._workflows[workflow_id] = stored
        return stored

    def get(self, workflow_id: str) -> StoredWorkflow | None:
        """Get a workflow by ID."""
        return self._workflows.get(workflow_id)

    def get_workflow_structure(self, workflow_id: str) -> WorkflowStructure:
        """
        Get the node and connection lists of a workflow.

        Raises:
            WorkflowNotFoundError: If no workflow has this ID
        """
        stored = self._workflows.get(workflow_id)
        if stored is None:
            raise WorkflowNotFoundError(workflow_id)
        return stored.structure

    def list(self) -> list[StoredWorkflow]:
        """List all workflows, most recently updated first."""
        return sorted(self._workflows.values(), key=lambda w: w.updated_at, reverse=True)

    def set_active(self, workflow_id: str, active: bool) -> StoredWorkflow:
        stored = self._workflows.get(workflow_id)
        if stored is None:
            raise WorkflowNotFoundError(workflow_id)
        stored.active = active
        stored.updated_at = datetime.now()
        return stored

    def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        return self._workflows.pop(workflow_id, None) is not None
