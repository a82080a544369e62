"""Execution-related Pydantic schemas."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ExecutionResponse(BaseModel):
    """Outcome of running a workflow to completion."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    execution_id: str = Field(..., alias="executionId")
    output_data: list[dict[str, Any]] | None = Field(None, alias="outputData")
    error: str | None = None
    error_node_id: str | None = Field(None, alias="errorNodeId")
    execution_time_ms: int = Field(..., alias="executionTimeMs")
    per_node_results: dict[str, list[dict[str, Any]]] = Field(..., alias="perNodeResults")
    executed_nodes: list[str] = Field(..., alias="executedNodes")
    item_error_count: int = Field(0, alias="itemErrorCount")


class ExecutionStatusResponse(BaseModel):
    """Status of an execution."""

    model_config = ConfigDict(populate_by_name=True)

    execution_id: str = Field(..., alias="executionId")
    workflow_id: str = Field(..., alias="workflowId")
    status: Literal["running", "completed", "failed", "cancelled"]
    output_data: list[dict[str, Any]] | None = Field(None, alias="outputData")
    error: str | None = None
    error_node_id: str | None = Field(None, alias="errorNodeId")
    item_error_count: int = Field(0, alias="itemErrorCount")


class ExecutionListItem(BaseModel):
    """Execution in list response."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    workflow_id: str = Field(..., alias="workflowId")
    status: str
    mode: str
    start_time: str = Field(..., alias="startTime")
    end_time: str | None = Field(None, alias="endTime")
    duration_ms: int | None = Field(None, alias="durationMs")
    item_error_count: int = Field(0, alias="itemErrorCount")


class ExecutionDetailResponse(ExecutionListItem):
    """Detailed execution response."""

    input: list[dict[str, Any]]
    output: list[dict[str, Any]] | None = None
    error: str | None = None
    error_node_id: str | None = Field(None, alias="errorNodeId")
    executed_nodes: list[str] = Field(default_factory=list, alias="executedNodes")
    node_outputs: dict[str, list[dict[str, Any]]] = Field(default_factory=dict, alias="nodeOutputs")


class ExecutionStatsResponse(BaseModel):
    """Execution history statistics."""

    model_config = ConfigDict(populate_by_name=True)

    total: int
    running: int
    by_status: dict[str, int] = Field(..., alias="byStatus")
    with_item_errors: int = Field(..., alias="withItemErrors")
    average_duration_ms: float | None = Field(None, alias="averageDurationMs")
