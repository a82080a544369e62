"""Node service for node type lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.exceptions import UnknownNodeTypeError

if TYPE_CHECKING:
    from ..engine.node_registry import NodeRegistry


class NodeService:
    """Service for node operations."""

    def __init__(self, node_registry: NodeRegistry) -> None:
        self._node_registry = node_registry

    def list_nodes(
        self,
        category: str | None = None,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        """List node types with schemas, optionally filtered by category and search term."""
        names = self._node_registry.list()
        if category:
            in_category = set(self._node_registry.list_by_category(category))
            names = [n for n in names if n in in_category]
        if search:
            matches = set(self._node_registry.search(search))
            names = [n for n in names if n in matches]
        return [self.get_node(name) for name in names]

    def get_node(self, node_type: str) -> dict[str, Any]:
        """Get schema for a specific node type."""
        info = self._node_registry.get_node_type_info(node_type)
        if not info:
            raise UnknownNodeTypeError(node_type)
        return info
