"""Core module for the workflow engine - config, exceptions, and dependencies."""

from .config import settings, Settings, get_settings
from .exceptions import (
    WorkflowEngineError,
    WorkflowNotFoundError,
    ExecutionNotFoundError,
    UnknownNodeTypeError,
    GraphErrorReason,
    GraphStructureError,
    NodeExecutionError,
    TriggerRegistrationError,
    PollError,
    WebhookHandlerError,
    EvalError,
)
from .dependencies import (
    get_trigger_registry,
    get_execution_service,
    get_workflow_service,
    get_node_service,
)

__all__ = [
    # Config
    "settings",
    "Settings",
    "get_settings",
    # Exceptions
    "WorkflowEngineError",
    "WorkflowNotFoundError",
    "ExecutionNotFoundError",
    "UnknownNodeTypeError",
    "GraphErrorReason",
    "GraphStructureError",
    "NodeExecutionError",
    "TriggerRegistrationError",
    "PollError",
    "WebhookHandlerError",
    "EvalError",
    # Dependencies
    "get_trigger_registry",
    "get_execution_service",
    "get_workflow_service",
    "get_node_service",
]
