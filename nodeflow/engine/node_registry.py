"""Node registry for managing workflow node types."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from ..core.exceptions import UnknownNodeTypeError

if TYPE_CHECKING:
    from ..nodes.base import BaseNode, NodeProperty, NodeTypeDescription

CATEGORIES = ("triggers", "core", "ai")


class NodeRegistry:
    """
    Catalog of node types.

    Maps a type name to its immutable description and to the class used as
    the factory for executor instances.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, type[BaseNode]] = {}

    def register(self, node_class: type[BaseNode]) -> None:
        """Register a node class if not already registered."""
        name = node_class.node_description.name
        if name not in self._nodes:
            self._nodes[name] = node_class

    def has(self, node_type: str) -> bool:
        """Check if node type is registered."""
        return node_type in self._nodes

    def list(self) -> list[str]:
        """List all registered node types."""
        return list(self._nodes.keys())

    def describe(self, node_type: str) -> NodeTypeDescription | None:
        """Get the description of a node type, or None if it is unknown."""
        node_class = self._nodes.get(node_type)
        return node_class.node_description if node_class else None

    def create(self, node_type: str) -> BaseNode:
        """
        Create an executor for a node type.

        Raises:
            UnknownNodeTypeError: If node type is not registered
        """
        node_class = self._nodes.get(node_type)
        if node_class is None:
            raise UnknownNodeTypeError(node_type)
        return node_class()

    def search(self, term: str) -> list[str]:
        """Case-insensitive search over display names, descriptions and parameter names."""
        needle = term.lower()
        matches = []
        for name, node_class in self._nodes.items():
            desc = node_class.node_description
            haystack = [desc.display_name, desc.description]
            haystack.extend(prop.display_name for prop in desc.properties)
            if any(needle in text.lower() for text in haystack):
                matches.append(name)
        return matches

    def list_by_category(self, category: str) -> list[str]:
        """List node types in a category (triggers, core, ai)."""
        return [
            name
            for name, node_class in self._nodes.items()
            if node_class.node_description.category == category
        ]

    def get_node_type_info(self, node_type: str) -> dict[str, Any] | None:
        """Get full info for a specific node type, shaped for API responses."""
        desc = self.describe(node_type)
        if desc is None:
            return None
        return self._build_node_type_info(desc)

    def list_node_type_info(self) -> list[dict[str, Any]]:
        """Get full info for every node type."""
        return [self._build_node_type_info(c.node_description) for c in self._nodes.values()]

    def _build_node_type_info(self, desc: NodeTypeDescription) -> dict[str, Any]:
        return {
            "type": desc.name,
            "displayName": desc.display_name,
            "description": desc.description,
            "category": desc.category,
            "icon": desc.icon,
            "group": list(desc.group),
            "inputs": [
                {"name": i.name, "displayName": i.display_name, "required": i.required}
                for i in desc.inputs
            ],
            "outputs": [{"name": o.name, "displayName": o.display_name} for o in desc.outputs],
            "properties": self._convert_properties(desc.properties),
            "isTrigger": desc.is_trigger,
            "supportsPolling": desc.supports_polling,
            "supportsWebhook": desc.supports_webhook,
        }

    def _convert_properties(self, properties: tuple[NodeProperty, ...]) -> list[dict[str, Any]]:
        """Convert properties to dict format for API responses."""
        result = []
        for prop in properties:
            prop_dict: dict[str, Any] = {
                "displayName": prop.display_name,
                "name": prop.name,
                "type": prop.type,
                "default": prop.default,
            }
            if prop.required:
                prop_dict["required"] = True
            if prop.description:
                prop_dict["description"] = prop.description
            if prop.placeholder:
                prop_dict["placeholder"] = prop.placeholder
            if prop.options:
                prop_dict["options"] = [
                    {"name": o.name, "value": o.value, "description": o.description}
                    for o in prop.options
                ]
            if prop.display_options:
                prop_dict["displayOptions"] = prop.display_options
            if prop.type_options:
                prop_dict["typeOptions"] = prop.type_options
            result.append(prop_dict)
        return result


def register_all_nodes(registry: NodeRegistry) -> NodeRegistry:
    """Register all built-in nodes."""
    from ..nodes import (
        # Triggers
        ManualTriggerNode,
        WebhookNode,
        ScheduleTriggerNode,
        EmailTriggerNode,
        # Core
        HttpRequestNode,
        SetNode,
        IfNode,
        CodeNode,
        MergeNode,
        # AI
        OpenAIAgentNode,
        MarketingAgentNode,
        SalesAgentNode,
        AgentChainNode,
    )

    all_node_classes: list[type[BaseNode]] = [
        ManualTriggerNode,
        WebhookNode,
        ScheduleTriggerNode,
        EmailTriggerNode,
        HttpRequestNode,
        SetNode,
        IfNode,
        CodeNode,
        MergeNode,
        OpenAIAgentNode,
        MarketingAgentNode,
        SalesAgentNode,
        AgentChainNode,
    ]

    for node_class in all_node_classes:
        registry.register(node_class)
    return registry


def create_default_registry() -> NodeRegistry:
    """Build a registry holding every built-in node type."""
    return register_all_nodes(NodeRegistry())
