"""Storage layer for workflows and executions."""

from .workflow_store import StoredWorkflow, WorkflowStore
from .execution_store import ExecutionStore

__all__ = [
    "StoredWorkflow",
    "WorkflowStore",
    "ExecutionStore",
]
