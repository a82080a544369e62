"""Services layer - business logic between routes and the engine."""

from .execution_service import ExecutionService
from .node_service import NodeService
from .trigger_registry import TriggerRegistry
from .workflow_service import WorkflowService

__all__ = [
    "ExecutionService",
    "NodeService",
    "TriggerRegistry",
    "WorkflowService",
]
