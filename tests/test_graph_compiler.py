"""
nodeflow - Graph Compiler Tests
===============================
"""

from dataclasses import asdict

import pytest

from conftest import connect, node
from nodeflow.core.exceptions import GraphErrorReason, GraphStructureError, UnknownNodeTypeError
from nodeflow.engine.graph_compiler import EdgeKind, compile
from nodeflow.engine.types import Connection, NodeDefinition


class TestCompileBasics:
    """Tests for entry point selection and edge kinds."""

    def test_zero_nodes_raises(self):
        with pytest.raises(GraphStructureError) as exc_info:
            compile([], [])
        assert exc_info.value.reason is GraphErrorReason.NO_NODES

    def test_single_node_plan(self, registry):
        plan = compile([node("t", "ManualTrigger")], [], registry)
        assert plan.entry_point == "t"
        assert plan.terminal_nodes() == ["t"]
        assert plan.edges["t"].kind is EdgeKind.TERMINAL

    def test_entry_point_is_first_node_without_inputs(self, registry):
        nodes = [node("set", "Set"), node("t", "ManualTrigger")]
        plan = compile(nodes, [connect("t", "set")], registry)
        assert plan.entry_point == "t"

    def test_entry_point_override(self, registry):
        nodes = [node("t", "ManualTrigger"), node("hook", "Webhook", path="/x"), node("set", "Set")]
        plan = compile(nodes, [connect("t", "set"), connect("hook", "set")], registry, entry_point="hook")
        assert plan.entry_point == "hook"

    def test_unknown_entry_point_override(self, registry):
        with pytest.raises(GraphStructureError) as exc_info:
            compile([node("t", "ManualTrigger")], [], registry, entry_point="ghost")
        assert exc_info.value.reason is GraphErrorReason.NO_ENTRY_POINT

    def test_direct_and_conditional_edges(self, registry):
        nodes = [node("t", "ManualTrigger"), node("if", "If"), node("yes", "Set"), node("no", "Set")]
        connections = [
            connect("t", "if"),
            connect("if", "yes", from_port="true"),
            connect("if", "no", from_port="false"),
        ]
        plan = compile(nodes, connections, registry)
        assert plan.edges["t"].kind is EdgeKind.DIRECT
        assert plan.edges["if"].kind is EdgeKind.CONDITIONAL
        assert plan.edges["if"].next_connection("false").to_node_id == "no"
        assert plan.edges["if"].next_connection(None) is None
        assert sorted(plan.terminal_nodes()) == ["no", "yes"]
        assert plan.successor_map()["if"] == ["yes", "no"]

    def test_compilation_is_idempotent(self, registry):
        nodes = [node("t", "ManualTrigger"), node("if", "If"), node("yes", "Set")]
        connections = [connect("t", "if"), connect("if", "yes", from_port="true")]
        assert compile(nodes, connections, registry) == compile(nodes, connections, registry)

    def test_plan_survives_rebuild_from_plain_data(self, registry):
        nodes = [node("t", "ManualTrigger"), node("if", "If"), node("yes", "Set"), node("no", "Set")]
        connections = [
            connect("t", "if"),
            connect("if", "yes", from_port="true"),
            connect("if", "no", from_port="false"),
        ]
        plan = compile(nodes, connections, registry)

        dumped_nodes = [asdict(n) for n in plan.nodes.values()]
        dumped_connections = [asdict(c) for edge in plan.edges.values() for c in edge.connections]
        rebuilt = compile(
            [NodeDefinition(**n) for n in dumped_nodes],
            [Connection(**c) for c in dumped_connections],
            registry,
        )

        assert rebuilt.entry_point == plan.entry_point
        assert rebuilt.successor_map() == plan.successor_map()
        assert {k: e.kind for k, e in rebuilt.edges.items()} == {k: e.kind for k, e in plan.edges.items()}
        assert rebuilt == plan

    def test_incoming_connections_are_indexed(self, registry):
        nodes = [node("t", "ManualTrigger"), node("set", "Set")]
        plan = compile(nodes, [connect("t", "set")], registry)
        assert [c.from_node_id for c in plan.incoming["set"]] == ["t"]
        assert plan.incoming["t"] == ()


class TestCompileErrors:
    """Tests for malformed graphs."""

    def test_duplicate_node_id(self):
        with pytest.raises(GraphStructureError) as exc_info:
            compile([node("a", "Set"), node("a", "Set")], [])
        assert exc_info.value.reason is GraphErrorReason.DUPLICATE_NODE

    def test_dangling_connection(self):
        with pytest.raises(GraphStructureError) as exc_info:
            compile([node("a", "Set")], [connect("a", "ghost")])
        assert exc_info.value.reason is GraphErrorReason.DANGLING_CONNECTION
        assert exc_info.value.node_id == "ghost"

    def test_self_loop(self):
        with pytest.raises(GraphStructureError) as exc_info:
            compile([node("a", "Set")], [connect("a", "a")])
        assert exc_info.value.reason is GraphErrorReason.SELF_LOOP

    def test_cycle_is_rejected(self):
        nodes = [node("t", "ManualTrigger"), node("a", "Set"), node("b", "Set")]
        connections = [connect("t", "a"), connect("a", "b"), connect("b", "a")]
        with pytest.raises(GraphStructureError) as exc_info:
            compile(nodes, connections)
        assert exc_info.value.reason is GraphErrorReason.CYCLE

    def test_pure_cycle_has_no_entry_point(self):
        nodes = [node("a", "Set"), node("b", "Set")]
        with pytest.raises(GraphStructureError) as exc_info:
            compile(nodes, [connect("a", "b"), connect("b", "a")])
        assert exc_info.value.reason is GraphErrorReason.NO_ENTRY_POINT

    def test_multiple_outgoing_from_one_port(self):
        nodes = [node("t", "ManualTrigger"), node("a", "Set"), node("b", "Set")]
        with pytest.raises(GraphStructureError) as exc_info:
            compile(nodes, [connect("t", "a"), connect("t", "b")])
        assert exc_info.value.reason is GraphErrorReason.MULTIPLE_OUTGOING_WITHOUT_HANDLER

    def test_invalid_output_port(self, registry):
        nodes = [node("t", "ManualTrigger"), node("a", "Set")]
        with pytest.raises(GraphStructureError) as exc_info:
            compile(nodes, [connect("t", "a", from_port="true")], registry)
        assert exc_info.value.reason is GraphErrorReason.INVALID_PORT

    def test_invalid_input_port(self, registry):
        nodes = [node("t", "ManualTrigger"), node("m", "Merge")]
        with pytest.raises(GraphStructureError) as exc_info:
            compile(nodes, [connect("t", "m", to_port="main")], registry)
        assert exc_info.value.reason is GraphErrorReason.INVALID_PORT

    def test_unknown_node_type_with_registry(self, registry):
        with pytest.raises(UnknownNodeTypeError):
            compile([node("a", "Nope")], [], registry)

    def test_unknown_node_type_without_registry_compiles(self):
        plan = compile([node("a", "Nope")], [])
        assert plan.entry_point == "a"
