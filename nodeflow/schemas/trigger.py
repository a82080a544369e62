"""Trigger-related Pydantic schemas."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TriggerRegisterRequest(BaseModel):
    """Request schema for registering a trigger."""

    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(..., min_length=1, alias="workflowId")
    node_id: str = Field(..., min_length=1, alias="nodeId")
    kind: str = Field(..., description="manual, webhook, schedule or email")
    parameters: dict[str, Any] = Field(default_factory=dict)
    credentials: dict[str, Any] | None = None
    node_type: str | None = Field(None, alias="nodeType")


class TriggerInfo(BaseModel):
    """An active trigger."""

    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(..., alias="workflowId")
    node_id: str = Field(..., alias="nodeId")
    kind: Literal["manual", "webhook", "schedule", "email"]
    node_type: str = Field(..., alias="nodeType")
    parameters: dict[str, Any]
    registered_at: str = Field(..., alias="registeredAt")


class TriggerStatisticsResponse(BaseModel):
    """Trigger registry statistics."""

    model_config = ConfigDict(populate_by_name=True)

    total_triggers: int = Field(..., alias="totalTriggers")
    triggers_by_type: dict[str, int] = Field(..., alias="triggersByType")
    polling_triggers_count: int = Field(..., alias="pollingTriggersCount")


class ManualTriggerRequest(BaseModel):
    """Data handed to a manual trigger."""

    data: dict[str, Any] | None = None


class TriggerResultResponse(BaseModel):
    """Outcome of firing a trigger."""

    model_config = ConfigDict(populate_by_name=True)

    triggered: bool
    data: list[dict[str, Any]] | None = None
    error: str | None = None
    execution_id: str | None = Field(None, alias="executionId")
