"""
Workflow graph compiler.

Turns a node list and connection list into an ExecutionPlan: an entry point
plus, for every node, the edge the runner follows after that node finishes.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..core.exceptions import GraphErrorReason, GraphStructureError
from .types import Connection, NodeDefinition

if TYPE_CHECKING:
    from .node_registry import NodeRegistry


class EdgeKind(str, Enum):
    DIRECT = "direct"
    CONDITIONAL = "conditional"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class Edge:
    """Successor rule for one node."""

    kind: EdgeKind
    connections: tuple[Connection, ...] = ()

    def next_connection(self, exit_port: str | None) -> Connection | None:
        """Pick the connection to follow given the port the node exited through."""
        if self.kind is EdgeKind.DIRECT:
            return self.connections[0]
        if self.kind is EdgeKind.CONDITIONAL:
            for connection in self.connections:
                if connection.from_port_id == exit_port:
                    return connection
        return None

    @property
    def targets(self) -> list[str]:
        return [c.to_node_id for c in self.connections]


@dataclass(frozen=True)
class ExecutionPlan:
    """Compiled, directed form of a workflow graph."""

    entry_point: str
    nodes: dict[str, NodeDefinition]
    edges: dict[str, Edge]
    incoming: dict[str, tuple[Connection, ...]] = field(default_factory=dict)

    def successor_map(self) -> dict[str, list[str]]:
        return {node_id: edge.targets for node_id, edge in self.edges.items()}

    def terminal_nodes(self) -> list[str]:
        return [
            node_id for node_id, edge in self.edges.items() if edge.kind is EdgeKind.TERMINAL
        ]


def compile(
    nodes: list[NodeDefinition],
    connections: list[Connection],
    registry: NodeRegistry | None = None,
    entry_point: str | None = None,
) -> ExecutionPlan:
    """
    Compile a workflow graph into an execution plan.

    Args:
        nodes: Node instances in workflow order
        connections: Directed connections between node ports
        registry: When given, node types and port names are validated against it
        entry_point: Start from this node instead of the first one with no inputs

    Raises:
        GraphStructureError: If the graph is empty, cyclic or malformed
        UnknownNodeTypeError: If a registry is given and a node type is unknown
    """
    if not nodes:
        raise GraphStructureError(GraphErrorReason.NO_NODES, "Workflow has no nodes")

    node_map: dict[str, NodeDefinition] = {}
    for node in nodes:
        if node.id in node_map:
            raise GraphStructureError(
                GraphErrorReason.DUPLICATE_NODE,
                f'Duplicate node id "{node.id}"',
                node_id=node.id,
            )
        node_map[node.id] = node

    for connection in connections:
        _check_connection(connection, node_map)

    if registry is not None:
        _check_ports(node_map, connections, registry)

    in_degree = {node_id: 0 for node_id in node_map}
    outgoing: dict[str, list[Connection]] = {node_id: [] for node_id in node_map}
    incoming: dict[str, list[Connection]] = {node_id: [] for node_id in node_map}
    for connection in connections:
        in_degree[connection.to_node_id] += 1
        outgoing[connection.from_node_id].append(connection)
        incoming[connection.to_node_id].append(connection)

    if entry_point is None:
        entry_point = next(
            (node_id for node_id, degree in in_degree.items() if degree == 0), None
        )
        if entry_point is None:
            raise GraphStructureError(
                GraphErrorReason.NO_ENTRY_POINT,
                "Workflow has no entry point: every node has an incoming connection",
            )
    elif entry_point not in node_map:
        raise GraphStructureError(
            GraphErrorReason.NO_ENTRY_POINT,
            f'Entry point "{entry_point}" is not a node of this workflow',
            node_id=entry_point,
        )

    _check_acyclic(in_degree, outgoing)

    edges = {node_id: _build_edge(node_id, outgoing[node_id]) for node_id in node_map}

    return ExecutionPlan(
        entry_point=entry_point,
        nodes=node_map,
        edges=edges,
        incoming={node_id: tuple(conns) for node_id, conns in incoming.items()},
    )


def _check_connection(connection: Connection, node_map: dict[str, NodeDefinition]) -> None:
    for node_id in (connection.from_node_id, connection.to_node_id):
        if node_id not in node_map:
            raise GraphStructureError(
                GraphErrorReason.DANGLING_CONNECTION,
                f'Connection "{connection.id}" references unknown node "{node_id}"',
                node_id=node_id,
                connection_id=connection.id,
            )
    if connection.from_node_id == connection.to_node_id:
        raise GraphStructureError(
            GraphErrorReason.SELF_LOOP,
            f'Connection "{connection.id}" connects node "{connection.from_node_id}" to itself',
            node_id=connection.from_node_id,
            connection_id=connection.id,
        )


def _check_ports(
    node_map: dict[str, NodeDefinition],
    connections: list[Connection],
    registry: NodeRegistry,
) -> None:
    # create() raises UnknownNodeTypeError for types the registry lacks
    descriptions = {
        node_id: registry.create(node.type).node_description for node_id, node in node_map.items()
    }
    for connection in connections:
        source = descriptions[connection.from_node_id]
        target = descriptions[connection.to_node_id]
        if connection.from_port_id not in source.output_names:
            raise GraphStructureError(
                GraphErrorReason.INVALID_PORT,
                f'Node type "{source.name}" has no output port "{connection.from_port_id}"',
                node_id=connection.from_node_id,
                connection_id=connection.id,
            )
        if connection.to_port_id not in target.input_names:
            raise GraphStructureError(
                GraphErrorReason.INVALID_PORT,
                f'Node type "{target.name}" has no input port "{connection.to_port_id}"',
                node_id=connection.to_node_id,
                connection_id=connection.id,
            )


def _check_acyclic(in_degree: dict[str, int], outgoing: dict[str, list[Connection]]) -> None:
    """Kahn's algorithm: any node left unvisited sits on a cycle."""
    remaining = dict(in_degree)
    queue = deque(node_id for node_id, degree in remaining.items() if degree == 0)
    visited = 0
    while queue:
        node_id = queue.popleft()
        visited += 1
        for connection in outgoing[node_id]:
            remaining[connection.to_node_id] -= 1
            if remaining[connection.to_node_id] == 0:
                queue.append(connection.to_node_id)

    if visited != len(remaining):
        cyclic = next(node_id for node_id, degree in remaining.items() if degree > 0)
        raise GraphStructureError(
            GraphErrorReason.CYCLE,
            f'Workflow graph contains a cycle through node "{cyclic}"',
            node_id=cyclic,
        )


def _build_edge(node_id: str, connections: list[Connection]) -> Edge:
    if not connections:
        return Edge(EdgeKind.TERMINAL)
    if len(connections) == 1:
        return Edge(EdgeKind.DIRECT, (connections[0],))

    seen_ports: set[str] = set()
    for connection in connections:
        if connection.from_port_id in seen_ports:
            raise GraphStructureError(
                GraphErrorReason.MULTIPLE_OUTGOING_WITHOUT_HANDLER,
                f'Node "{node_id}" has several connections leaving port '
                f'"{connection.from_port_id}"; only one successor per port can be followed',
                node_id=node_id,
                connection_id=connection.id,
            )
        seen_ports.add(connection.from_port_id)
    return Edge(EdgeKind.CONDITIONAL, tuple(connections))
