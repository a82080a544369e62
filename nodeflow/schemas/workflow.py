"""Workflow-related Pydantic schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..engine.types import Connection, NodeDefinition, WorkflowStructure


class NodeSchema(BaseModel):
    """A node placed in a workflow."""

    id: str = Field(..., min_length=1, description="Unique id of this node in the workflow")
    type: str = Field(..., description="Node type identifier")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Node parameters")
    position: dict[str, float] | None = Field(None, description="UI position {x, y}")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "http_1",
                "type": "HttpRequest",
                "parameters": {"url": "https://api.example.com", "method": "GET"},
            }
        }
    )


class ConnectionSchema(BaseModel):
    """Connection from one node's output port to another node's input port."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(None, description="Connection id; generated when omitted")
    from_node_id: str = Field(..., alias="fromNodeId")
    to_node_id: str = Field(..., alias="toNodeId")
    from_port_id: str = Field("main", alias="fromPortId")
    to_port_id: str = Field("main", alias="toPortId")


class WorkflowRequest(BaseModel):
    """Request schema for creating or replacing a workflow."""

    name: str | None = Field(None, max_length=255)
    nodes: list[NodeSchema] = Field(..., min_length=1)
    connections: list[ConnectionSchema] = Field(default_factory=list)

    def to_structure(self) -> WorkflowStructure:
        return WorkflowStructure(
            name=self.name,
            nodes=[
                NodeDefinition(id=n.id, type=n.type, parameters=dict(n.parameters), position=n.position)
                for n in self.nodes
            ],
            connections=[
                Connection(
                    id=c.id or f"c{index}",
                    from_node_id=c.from_node_id,
                    to_node_id=c.to_node_id,
                    from_port_id=c.from_port_id,
                    to_port_id=c.to_port_id,
                )
                for index, c in enumerate(self.connections)
            ],
        )


class WorkflowResponse(BaseModel):
    """A stored workflow."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    active: bool
    nodes: list[NodeSchema]
    connections: list[ConnectionSchema]
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")


class WorkflowListItem(BaseModel):
    """Workflow in list response."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    active: bool
    node_count: int = Field(..., alias="nodeCount")
    updated_at: str = Field(..., alias="updatedAt")


class ExecuteWorkflowRequest(BaseModel):
    """Request schema for running a stored workflow."""

    model_config = ConfigDict(populate_by_name=True)

    trigger_kind: Literal["manual", "webhook", "schedule", "email"] = Field(
        "manual", alias="triggerKind"
    )
    input_data: dict[str, Any] | list[dict[str, Any]] | None = Field(None, alias="inputData")
    entry_point: str | None = Field(None, alias="entryPoint")


class ActivateWorkflowRequest(BaseModel):
    """Credentials for the workflow's trigger nodes, keyed by node id."""

    credentials: dict[str, dict[str, Any]] | None = None


class WorkflowActiveResponse(BaseModel):
    """Response schema for activation changes."""

    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(..., alias="workflowId")
    active: bool
    triggers: list[str] = Field(default_factory=list)
