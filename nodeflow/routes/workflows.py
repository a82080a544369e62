"""Workflow routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ..core.dependencies import get_execution_service, get_workflow_service
from ..core.exceptions import (
    GraphStructureError,
    TriggerRegistrationError,
    UnknownNodeTypeError,
    WorkflowNotFoundError,
)
from ..schemas.common import SuccessResponse
from ..schemas.execution import ExecutionResponse
from ..schemas.workflow import (
    ActivateWorkflowRequest,
    ConnectionSchema,
    ExecuteWorkflowRequest,
    NodeSchema,
    WorkflowActiveResponse,
    WorkflowListItem,
    WorkflowRequest,
    WorkflowResponse,
)
from ..services.execution_service import ExecutionService
from ..services.workflow_service import WorkflowService
from ..storage import StoredWorkflow

router = APIRouter(prefix="/workflows")


# Type aliases for dependency injection
WorkflowServiceDep = Annotated[WorkflowService, Depends(get_workflow_service)]
ExecutionServiceDep = Annotated[ExecutionService, Depends(get_execution_service)]


def _to_response(stored: StoredWorkflow) -> WorkflowResponse:
    return WorkflowResponse(
        id=stored.id,
        name=stored.name,
        active=stored.active,
        nodes=[
            NodeSchema(id=n.id, type=n.type, parameters=n.parameters, position=n.position)
            for n in stored.structure.nodes
        ],
        connections=[
            ConnectionSchema(
                id=c.id,
                from_node_id=c.from_node_id,
                to_node_id=c.to_node_id,
                from_port_id=c.from_port_id,
                to_port_id=c.to_port_id,
            )
            for c in stored.structure.connections
        ],
        created_at=stored.created_at.isoformat(),
        updated_at=stored.updated_at.isoformat(),
    )


@router.get("", response_model=list[WorkflowListItem])
async def list_workflows(service: WorkflowServiceDep) -> list[WorkflowListItem]:
    """List all workflows."""
    return [
        WorkflowListItem(
            id=w.id,
            name=w.name,
            active=w.active,
            node_count=len(w.structure.nodes),
            updated_at=w.updated_at.isoformat(),
        )
        for w in service.list()
    ]


@router.put("/{workflow_id}", response_model=WorkflowResponse)
async def save_workflow(
    workflow_id: str,
    workflow: WorkflowRequest,
    service: WorkflowServiceDep,
) -> WorkflowResponse:
    """Create or replace a workflow."""
    try:
        stored = await service.save(workflow_id, workflow.to_structure())
    except (GraphStructureError, UnknownNodeTypeError) as e:
        raise HTTPException(status_code=400, detail=e.message)
    return _to_response(stored)


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(workflow_id: str, service: WorkflowServiceDep) -> WorkflowResponse:
    """Get a single workflow by ID."""
    try:
        return _to_response(service.get(workflow_id))
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/{workflow_id}", response_model=SuccessResponse)
async def delete_workflow(workflow_id: str, service: WorkflowServiceDep) -> SuccessResponse:
    """Delete a workflow and its triggers."""
    try:
        await service.delete(workflow_id)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return SuccessResponse(message=f"Workflow {workflow_id} deleted")


@router.post("/{workflow_id}/execute", response_model=ExecutionResponse)
async def execute_workflow(
    workflow_id: str,
    service: ExecutionServiceDep,
    body: ExecuteWorkflowRequest | None = None,
) -> ExecutionResponse:
    """Run a stored workflow to completion."""
    body = body or ExecuteWorkflowRequest()
    try:
        result = await service.execute(
            workflow_id,
            body.trigger_kind,
            body.input_data,
            entry_point=body.entry_point,
        )
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except (GraphStructureError, UnknownNodeTypeError) as e:
        raise HTTPException(status_code=400, detail=e.message)
    return ExecutionResponse.model_validate(result)


@router.post("/{workflow_id}/activate", response_model=WorkflowActiveResponse)
async def activate_workflow(
    workflow_id: str,
    service: WorkflowServiceDep,
    body: ActivateWorkflowRequest | None = None,
) -> WorkflowActiveResponse:
    """Register the workflow's trigger nodes."""
    try:
        triggers = await service.activate(workflow_id, body.credentials if body else None)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except TriggerRegistrationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return WorkflowActiveResponse(workflow_id=workflow_id, active=True, triggers=triggers)


@router.post("/{workflow_id}/deactivate", response_model=WorkflowActiveResponse)
async def deactivate_workflow(
    workflow_id: str,
    service: WorkflowServiceDep,
) -> WorkflowActiveResponse:
    """Unregister the workflow's triggers."""
    try:
        await service.deactivate(workflow_id)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return WorkflowActiveResponse(workflow_id=workflow_id, active=False)
