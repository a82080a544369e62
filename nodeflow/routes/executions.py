"""Execution routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.dependencies import get_execution_service
from ..core.exceptions import ExecutionNotFoundError
from ..engine.types import ExecutionRecord
from ..schemas.common import SuccessResponse
from ..schemas.execution import (
    ExecutionDetailResponse,
    ExecutionListItem,
    ExecutionStatsResponse,
    ExecutionStatusResponse,
)
from ..services.execution_service import ExecutionService

router = APIRouter(prefix="/executions")


# Type alias for dependency injection
ExecutionServiceDep = Annotated[ExecutionService, Depends(get_execution_service)]


def _list_item(record: ExecutionRecord) -> ExecutionListItem:
    return ExecutionListItem(
        id=record.id,
        workflow_id=record.workflow_id,
        status=record.status,
        mode=record.mode,
        start_time=record.start_time.isoformat(),
        end_time=record.end_time.isoformat() if record.end_time else None,
        duration_ms=record.duration_ms,
        item_error_count=record.item_error_count,
    )


@router.get("", response_model=list[ExecutionListItem])
async def list_executions(
    service: ExecutionServiceDep,
    workflow_id: str | None = Query(None, alias="workflowId"),
) -> list[ExecutionListItem]:
    """List execution history, newest first."""
    return [_list_item(r) for r in service.list(workflow_id)]


@router.get("/stats", response_model=ExecutionStatsResponse)
async def execution_stats(service: ExecutionServiceDep) -> ExecutionStatsResponse:
    """Execution history statistics."""
    return ExecutionStatsResponse.model_validate(service.stats())


@router.get("/{execution_id}", response_model=ExecutionDetailResponse)
async def get_execution(execution_id: str, service: ExecutionServiceDep) -> ExecutionDetailResponse:
    """Get execution details."""
    try:
        record = service.get(execution_id)
    except ExecutionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    return ExecutionDetailResponse(
        **_list_item(record).model_dump(),
        input=record.input,
        output=record.output,
        error=record.error,
        error_node_id=record.error_node_id,
        executed_nodes=record.executed_nodes,
        node_outputs=record.node_outputs,
    )


@router.get("/{execution_id}/status", response_model=ExecutionStatusResponse)
async def get_execution_status(
    execution_id: str,
    service: ExecutionServiceDep,
) -> ExecutionStatusResponse:
    """Poll the status of an execution."""
    try:
        return ExecutionStatusResponse.model_validate(service.get_status(execution_id))
    except ExecutionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{execution_id}/cancel", response_model=SuccessResponse)
async def cancel_execution(execution_id: str, service: ExecutionServiceDep) -> SuccessResponse:
    """Cancel a running execution."""
    try:
        cancelled = await service.cancel(execution_id)
    except ExecutionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    if not cancelled:
        raise HTTPException(status_code=409, detail="Execution is not running")
    return SuccessResponse(message=f"Execution {execution_id} cancelled")
