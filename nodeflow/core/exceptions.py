"""Custom exceptions for the nodeflow engine."""

from enum import Enum
from typing import Any


class WorkflowEngineError(Exception):
    """Base exception for all workflow engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class WorkflowNotFoundError(WorkflowEngineError):
    """Raised when a workflow is not found."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(
            message=f"Workflow not found: {workflow_id}",
            details={"workflow_id": workflow_id},
        )
        self.workflow_id = workflow_id


class ExecutionNotFoundError(WorkflowEngineError):
    """Raised when an execution record is not found."""

    def __init__(self, execution_id: str) -> None:
        super().__init__(
            message=f"Execution not found: {execution_id}",
            details={"execution_id": execution_id},
        )
        self.execution_id = execution_id


class UnknownNodeTypeError(WorkflowEngineError):
    """Raised when a node type is not registered."""

    def __init__(self, node_type: str) -> None:
        super().__init__(
            message=f'Unknown node type: "{node_type}"',
            details={"node_type": node_type},
        )
        self.node_type = node_type


class GraphErrorReason(str, Enum):
    """Why a workflow graph failed to compile."""

    NO_NODES = "no_nodes"
    NO_ENTRY_POINT = "no_entry_point"
    DUPLICATE_NODE = "duplicate_node"
    DANGLING_CONNECTION = "dangling_connection"
    SELF_LOOP = "self_loop"
    INVALID_PORT = "invalid_port"
    CYCLE = "cycle"
    MULTIPLE_OUTGOING_WITHOUT_HANDLER = "multiple_outgoing_without_handler"


class GraphStructureError(WorkflowEngineError):
    """Raised when a workflow graph cannot be compiled into a plan."""

    def __init__(
        self,
        reason: GraphErrorReason,
        message: str,
        node_id: str | None = None,
        connection_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"reason": reason.value}
        if node_id:
            details["node_id"] = node_id
        if connection_id:
            details["connection_id"] = connection_id
        super().__init__(message=message, details=details)
        self.reason = reason
        self.node_id = node_id
        self.connection_id = connection_id


class NodeExecutionError(WorkflowEngineError):
    """Raised when a node's executor fails and the run is aborted."""

    def __init__(
        self,
        message: str,
        node_id: str,
        node_type: str | None = None,
        executed_nodes: list[str] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            details={
                "node_id": node_id,
                "node_type": node_type,
                "executed_nodes": list(executed_nodes or []),
            },
        )
        self.node_id = node_id
        self.node_type = node_type
        self.executed_nodes = list(executed_nodes or [])


class TriggerRegistrationError(WorkflowEngineError):
    """Raised when a trigger cannot be registered."""

    def __init__(self, message: str, workflow_id: str, node_id: str) -> None:
        super().__init__(
            message=message,
            details={"workflow_id": workflow_id, "node_id": node_id},
        )
        self.workflow_id = workflow_id
        self.node_id = node_id


class PollError(WorkflowEngineError):
    """Raised when a polling trigger cannot check its source."""


class WebhookHandlerError(WorkflowEngineError):
    """Raised when a webhook node rejects an inbound request."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message=message, details={"status_code": status_code})
        self.status_code = status_code


class EvalError(WorkflowEngineError):
    """Raised when sandboxed user code fails, is rejected, or times out."""
