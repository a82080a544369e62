"""Base node class for all workflow nodes."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine.types import (
        ExecutionContext,
        NodeData,
        NodeDefinition,
        NodeExecutionResult,
        WebhookRequest,
        WebhookResult,
    )


@dataclass(frozen=True)
class NodePropertyOption:
    """Option for a node property."""

    name: str
    value: str
    description: str | None = None


@dataclass(frozen=True)
class NodeProperty:
    """Property definition for node schema."""

    display_name: str
    name: str
    type: str  # string, number, boolean, options, collection, json
    default: Any = None
    required: bool = False
    description: str | None = None
    placeholder: str | None = None
    options: tuple[NodePropertyOption, ...] | None = None
    display_options: dict[str, Any] | None = None
    type_options: dict[str, Any] | None = None


@dataclass(frozen=True)
class NodeInputDefinition:
    """Input port of a node."""

    name: str
    display_name: str
    required: bool = False


@dataclass(frozen=True)
class NodeOutputDefinition:
    """Output port of a node."""

    name: str
    display_name: str


@dataclass(frozen=True)
class NodeTypeDescription:
    """Full description of a node type for UI generation and graph checks."""

    name: str
    display_name: str
    description: str
    category: str = "core"  # triggers, core, ai
    icon: str | None = None
    group: tuple[str, ...] = ("transform",)
    inputs: tuple[NodeInputDefinition, ...] = (
        NodeInputDefinition(name="main", display_name="Input"),
    )
    outputs: tuple[NodeOutputDefinition, ...] = (
        NodeOutputDefinition(name="main", display_name="Output"),
    )
    properties: tuple[NodeProperty, ...] = field(default_factory=tuple)
    is_trigger: bool = False
    supports_polling: bool = False
    supports_webhook: bool = False

    @property
    def input_names(self) -> list[str]:
        return [i.name for i in self.inputs]

    @property
    def output_names(self) -> list[str]:
        return [o.name for o in self.outputs]


class BaseNode(ABC):
    """
    Abstract base class for all workflow nodes.

    Nodes define a class-level `node_description`. Trigger nodes that declare
    `supports_polling` or `supports_webhook` override `poll` or `webhook`.
    """

    node_description: NodeTypeDescription

    @property
    def type(self) -> str:
        """Node type identifier."""
        return self.node_description.name

    @property
    def description(self) -> str:
        return self.node_description.description

    @abstractmethod
    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        """Execute the node logic."""
        ...

    async def poll(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
    ) -> list[NodeData]:
        """Check the trigger source for new events."""
        raise NotImplementedError(f"{self.type} does not support polling")

    async def webhook(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        request: WebhookRequest,
    ) -> WebhookResult:
        """Handle an inbound HTTP request."""
        raise NotImplementedError(f"{self.type} does not handle webhooks")

    def get_parameter(
        self,
        node_definition: NodeDefinition,
        key: str,
        default: Any = None,
    ) -> Any:
        """Get a parameter value from node definition."""
        value = node_definition.parameters.get(key)
        if value is None:
            if default is None and self._is_required_parameter(key):
                raise ValueError(
                    f'Missing required parameter "{key}" in node "{node_definition.id}"'
                )
            return default
        return value

    def get_json_parameter(
        self,
        node_definition: NodeDefinition,
        key: str,
        default: Any = None,
    ) -> Any:
        """Get a parameter that may arrive either as JSON text or already parsed."""
        value = self.get_parameter(node_definition, key, default)
        if isinstance(value, str):
            if not value.strip():
                return default
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f'Parameter "{key}" is not valid JSON: {e}') from e
        return value

    def _is_required_parameter(self, key: str) -> bool:
        for prop in self.node_description.properties:
            if prop.name == key:
                return prop.required
        return False

    def output(self, data: list[NodeData]) -> NodeExecutionResult:
        """Helper to create single-output result."""
        from ..engine.types import NodeExecutionResult

        return NodeExecutionResult(outputs={"main": data})

    def outputs(self, outputs: dict[str, list[NodeData]]) -> NodeExecutionResult:
        """Helper to create multi-output result."""
        from ..engine.types import NodeExecutionResult

        return NodeExecutionResult(outputs=outputs)


def utc_timestamp() -> str:
    """ISO-8601 timestamp used on trigger and agent items."""
    return datetime.now(timezone.utc).isoformat()


def get_nested_value(obj: Any, path: str) -> Any:
    """Get value at a dot-separated path, or the object itself for an empty path."""
    if not path:
        return obj
    current: Any = obj
    for key in path.split("."):
        if isinstance(current, dict):
            current = current.get(key)
        else:
            return None
    return current


def set_nested_value(obj: dict[str, Any], path: str, value: Any) -> None:
    """Set value at nested path, creating intermediate objects as needed."""
    keys = path.split(".")
    current = obj
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value
