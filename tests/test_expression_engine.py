"""
nodeflow - Expression Engine Tests
==================================
"""

import pytest

from nodeflow.engine.expression_engine import ExpressionEngine, expression_engine
from nodeflow.engine.types import NodeData, NodeOutput, RunState


@pytest.fixture
def ctx():
    state = RunState()
    state.outputs["fetch"] = NodeOutput(port="main", items=[NodeData(json={"status": 200}), NodeData(json={"status": 404})])
    items = [NodeData(json={"name": "ada", "tags": ["a", "b"], "user": {"age": 36}}), NodeData(json={"name": "bob"})]
    return ExpressionEngine.create_context(items, state, execution_id="e-1", item_index=0, mode="webhook")


class TestResolve:

    def test_single_expression_keeps_type(self, ctx):
        assert expression_engine.resolve("{{ $json.user.age + 1 }}", ctx) == 37

    def test_mixed_text_is_interpolated(self, ctx):
        assert expression_engine.resolve("Hi {{ upper($json.name) }}!", ctx) == "Hi ADA!"

    def test_lists_render_as_json(self, ctx):
        assert expression_engine.resolve("tags={{ $json.tags }}", ctx) == 'tags=["a", "b"]'

    def test_missing_fields_render_empty(self, ctx):
        assert expression_engine.resolve("[{{ $json.missing }}]", ctx) == "[]"

    def test_nested_structures(self, ctx):
        value = {"a": ["{{ $json.name }}", 1], "b": {"c": "{{ $itemIndex }}"}}
        assert expression_engine.resolve(value, ctx) == {"a": ["ada", 1], "b": {"c": 0}}

    def test_plain_values_untouched(self, ctx):
        assert expression_engine.resolve("no braces", ctx) == "no braces"
        assert expression_engine.resolve(5, ctx) == 5

    def test_node_reference(self, ctx):
        assert expression_engine.resolve('{{ $node["fetch"].json.status }}', ctx) == 200
        assert expression_engine.resolve('{{ len($node["fetch"].data) }}', ctx) == 2

    def test_input_and_execution(self, ctx):
        assert expression_engine.resolve("{{ $input[1].name }}", ctx) == "bob"
        assert expression_engine.resolve("{{ $execution.mode }}", ctx) == "webhook"

    def test_errors_become_marker_text(self, ctx):
        result = expression_engine.resolve("{{ $json.name.nope.deeper }}", ctx)
        assert result.startswith("[Expression Error")

    def test_disallowed_functions(self, ctx):
        assert expression_engine.resolve("{{ open('/etc/passwd') }}", ctx).startswith("[Expression Error")
