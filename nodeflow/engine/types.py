"""Core type definitions for the workflow engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from .llm_provider import TextCompletion

ExecutionMode = Literal["manual", "webhook", "schedule", "email"]


@dataclass
class NodeData:
    """Data item passed between nodes."""

    json: dict[str, Any]
    binary: dict[str, bytes] | None = None

    @classmethod
    def error_item(cls, message: str, **extra: Any) -> NodeData:
        """Item standing in for a per-item failure."""
        return cls(json={"error": True, "message": message, **extra})

    @property
    def is_error(self) -> bool:
        return self.json.get("error") is True


# --- Workflow Schema Types ---


@dataclass
class NodeDefinition:
    """A node placed inside a workflow."""

    id: str
    type: str
    parameters: dict[str, Any] = field(default_factory=dict)
    position: dict[str, float] | None = None


@dataclass
class Connection:
    """Directed edge from one node's output port to another node's input port."""

    id: str
    from_node_id: str
    to_node_id: str
    from_port_id: str = "main"
    to_port_id: str = "main"


@dataclass
class WorkflowStructure:
    """Node and connection lists as stored for a workflow."""

    nodes: list[NodeDefinition]
    connections: list[Connection] = field(default_factory=list)
    name: str | None = None


# --- Execution state ---


@dataclass
class NodeExecutionResult:
    """
    Multi-output result from node execution.

    Keys are output port names: "main", "true", "false", etc.
    """

    outputs: dict[str, list[NodeData]]


@dataclass
class NodeOutput:
    """What a node produced in a run, and the port it exited through."""

    port: str | None
    items: list[NodeData]
    outputs: dict[str, list[NodeData]] = field(default_factory=dict)


@dataclass
class RunState:
    """Per-execution record of executed nodes and their outputs."""

    executed_nodes: list[str] = field(default_factory=list)
    outputs: dict[str, NodeOutput] = field(default_factory=dict)
    error: str | None = None

    def record(self, node_id: str, output: NodeOutput) -> None:
        self.outputs[node_id] = output
        self.executed_nodes.append(node_id)


@dataclass
class ExecutionContext:
    """Context for a workflow execution."""

    execution_id: str
    workflow_id: str | None = None
    mode: ExecutionMode = "manual"
    start_time: datetime = field(default_factory=datetime.now)
    run_state: RunState = field(default_factory=RunState)

    # Per-port input batches for the node currently executing
    pending_inputs: dict[str, dict[str, list[NodeData]]] = field(default_factory=dict)

    # Credentials for trigger nodes (IMAP login, webhook auth)
    credentials: dict[str, Any] = field(default_factory=dict)

    # Mutable per-registration state for polling triggers
    trigger_state: dict[str, Any] = field(default_factory=dict)

    # Shared HTTP client for performance
    http_client: Any | None = None  # httpx.AsyncClient

    # Text-completion capability for agent nodes
    llm: TextCompletion | None = None

    code_timeout: float = 5.0


@dataclass
class RunResult:
    """Outcome of walking an execution plan."""

    success: bool
    final_output: list[NodeData]
    per_node_outputs: dict[str, NodeOutput]
    executed_nodes: list[str]
    error: str | None = None
    error_node_id: str | None = None
    item_error_count: int = 0

    def raise_for_error(self) -> None:
        """Re-raise a failed run as NodeExecutionError."""
        from ..core.exceptions import NodeExecutionError

        if not self.success:
            raise NodeExecutionError(
                self.error or "Workflow execution failed",
                node_id=self.error_node_id or "",
                executed_nodes=self.executed_nodes,
            )


# --- Triggers ---


class TriggerKind(str, Enum):
    """Kinds of trigger the registry understands."""

    MANUAL = "manual"
    WEBHOOK = "webhook"
    SCHEDULE = "schedule"
    EMAIL = "email"

    @property
    def is_polling(self) -> bool:
        return self in (TriggerKind.SCHEDULE, TriggerKind.EMAIL)


@dataclass
class TriggerRegistration:
    """An active trigger for one (workflow, node) pair."""

    workflow_id: str
    node_id: str
    kind: TriggerKind
    node_type: str
    parameters: dict[str, Any] = field(default_factory=dict)
    credentials: dict[str, Any] | None = None
    registered_at: datetime = field(default_factory=datetime.now)
    # Survives between polls of this registration
    state: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.workflow_id, self.node_id)

    @property
    def label(self) -> str:
        return f"{self.workflow_id}/{self.node_id}"


@dataclass
class WebhookRequest:
    """Inbound HTTP request handed to a webhook node."""

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    params: dict[str, Any] = field(default_factory=dict)
    base_url: str = ""


@dataclass
class WebhookResponse:
    """Response returned to a webhook caller."""

    status_code: int = 200
    body: Any = None


@dataclass
class WebhookResult:
    """What a webhook node produced for an inbound request."""

    items: list[NodeData]
    response_mode: Literal["onReceived", "lastNode"] = "onReceived"
    response: WebhookResponse | None = None


@dataclass
class TriggerResult:
    """Outcome of firing a trigger directly."""

    triggered: bool
    data: list[dict[str, Any]] | None = None
    error: str | None = None
    execution_id: str | None = None
    response: WebhookResponse | None = None


@dataclass
class TriggerStatistics:
    """Point-in-time snapshot of the trigger registry."""

    total_triggers: int
    triggers_by_type: dict[str, int]
    polling_triggers_count: int


# --- History ---


ExecutionStatus = Literal["running", "completed", "failed", "cancelled"]


@dataclass
class ExecutionRecord:
    """Execution record for history."""

    id: str
    workflow_id: str
    status: ExecutionStatus
    mode: ExecutionMode
    start_time: datetime
    end_time: datetime | None = None
    input: list[dict[str, Any]] = field(default_factory=list)
    output: list[dict[str, Any]] | None = None
    error: str | None = None
    error_node_id: str | None = None
    executed_nodes: list[str] = field(default_factory=list)
    node_outputs: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    item_error_count: int = 0

    @property
    def duration_ms(self) -> int | None:
        if not self.end_time:
            return None
        return int((self.end_time - self.start_time).total_seconds() * 1000)
