"""Pydantic schemas for API requests and responses."""

from .common import HealthResponse, RootResponse, SuccessResponse
from .execution import (
    ExecutionDetailResponse,
    ExecutionListItem,
    ExecutionResponse,
    ExecutionStatsResponse,
    ExecutionStatusResponse,
)
from .trigger import (
    ManualTriggerRequest,
    TriggerInfo,
    TriggerRegisterRequest,
    TriggerResultResponse,
    TriggerStatisticsResponse,
)
from .workflow import (
    ActivateWorkflowRequest,
    ConnectionSchema,
    ExecuteWorkflowRequest,
    NodeSchema,
    WorkflowActiveResponse,
    WorkflowListItem,
    WorkflowRequest,
    WorkflowResponse,
)

__all__ = [
    "HealthResponse",
    "RootResponse",
    "SuccessResponse",
    "ExecutionDetailResponse",
    "ExecutionListItem",
    "ExecutionResponse",
    "ExecutionStatsResponse",
    "ExecutionStatusResponse",
    "ManualTriggerRequest",
    "TriggerInfo",
    "TriggerRegisterRequest",
    "TriggerResultResponse",
    "TriggerStatisticsResponse",
    "ActivateWorkflowRequest",
    "ConnectionSchema",
    "ExecuteWorkflowRequest",
    "NodeSchema",
    "WorkflowActiveResponse",
    "WorkflowListItem",
    "WorkflowRequest",
    "WorkflowResponse",
]
