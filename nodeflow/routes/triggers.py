"""Trigger registry routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ..core.dependencies import get_trigger_registry
from ..core.exceptions import TriggerRegistrationError
from ..schemas.common import SuccessResponse
from ..schemas.trigger import (
    ManualTriggerRequest,
    TriggerInfo,
    TriggerRegisterRequest,
    TriggerResultResponse,
    TriggerStatisticsResponse,
)
from ..services.trigger_registry import TriggerRegistry

router = APIRouter(prefix="/triggers")


# Type alias for dependency injection
TriggerRegistryDep = Annotated[TriggerRegistry, Depends(get_trigger_registry)]


@router.post("", response_model=SuccessResponse, status_code=201)
async def register_trigger(
    body: TriggerRegisterRequest,
    registry: TriggerRegistryDep,
) -> SuccessResponse:
    """Register (or replace) a trigger."""
    try:
        await registry.register(
            body.workflow_id,
            body.node_id,
            body.kind,
            body.parameters,
            credentials=body.credentials,
            node_type=body.node_type,
        )
    except TriggerRegistrationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return SuccessResponse(message=f"Trigger {body.workflow_id}-{body.node_id} registered")


@router.get("", response_model=list[TriggerInfo])
async def list_triggers(registry: TriggerRegistryDep) -> list[TriggerInfo]:
    """List active triggers."""
    return [
        TriggerInfo(
            workflow_id=r.workflow_id,
            node_id=r.node_id,
            kind=r.kind.value,
            node_type=r.node_type,
            parameters=r.parameters,
            registered_at=r.registered_at.isoformat(),
        )
        for r in registry.active_triggers()
    ]


@router.get("/statistics", response_model=TriggerStatisticsResponse)
async def trigger_statistics(registry: TriggerRegistryDep) -> TriggerStatisticsResponse:
    """Counts of active triggers."""
    stats = registry.statistics()
    return TriggerStatisticsResponse(
        total_triggers=stats.total_triggers,
        triggers_by_type=stats.triggers_by_type,
        polling_triggers_count=stats.polling_triggers_count,
    )


@router.delete("/{workflow_id}/{node_id}", response_model=SuccessResponse)
async def unregister_trigger(
    workflow_id: str,
    node_id: str,
    registry: TriggerRegistryDep,
) -> SuccessResponse:
    """Unregister a trigger."""
    if not await registry.unregister(workflow_id, node_id):
        raise HTTPException(status_code=404, detail="Trigger not found")
    return SuccessResponse(message=f"Trigger {workflow_id}-{node_id} unregistered")


@router.post("/{workflow_id}/{node_id}/manual", response_model=TriggerResultResponse)
async def fire_manual_trigger(
    workflow_id: str,
    node_id: str,
    registry: TriggerRegistryDep,
    body: ManualTriggerRequest | None = None,
) -> TriggerResultResponse:
    """Fire a manual trigger."""
    result = await registry.execute_manual(workflow_id, node_id, body.data if body else None)
    return TriggerResultResponse(
        triggered=result.triggered,
        data=result.data,
        error=result.error,
        execution_id=result.execution_id,
    )
