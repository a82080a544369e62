"""FastAPI dependency injection for the workflow engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from ..services import ExecutionService, NodeService, TriggerRegistry, WorkflowService


# Instances are built once in the application lifespan and kept on app.state


def get_trigger_registry(request: Request) -> TriggerRegistry:
    """Get trigger registry instance."""
    return request.app.state.trigger_registry


def get_execution_service(request: Request) -> ExecutionService:
    """Get execution service instance."""
    return request.app.state.execution_service


def get_workflow_service(request: Request) -> WorkflowService:
    """Get workflow service instance."""
    return request.app.state.workflow_service


def get_node_service(request: Request) -> NodeService:
    """Get node service instance."""
    return request.app.state.node_service
