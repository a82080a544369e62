"""Code node - run user Python against the item batch in a sandbox."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from ..base import (
    BaseNode,
    NodeTypeDescription,
    NodeInputDefinition,
    NodeOutputDefinition,
    NodeProperty,
    NodePropertyOption,
)

if TYPE_CHECKING:
    from ...engine.types import ExecutionContext, NodeData, NodeDefinition, NodeExecutionResult


class CodeNode(BaseNode):
    """Code node - execute custom Python code in a sandboxed environment."""

    node_description = NodeTypeDescription(
        name="Code",
        display_name="Code",
        description="Execute custom Python code",
        category="core",
        icon="fa:code",
        group=("transform",),
        inputs=(NodeInputDefinition(name="main", display_name="Input"),),
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Mode",
                name="mode",
                type="options",
                default="runOnceForAllItems",
                options=(
                    NodePropertyOption(
                        name="Run Once for All Items",
                        value="runOnceForAllItems",
                        description="Code runs once and receives every item",
                    ),
                    NodePropertyOption(
                        name="Run Once for Each Item",
                        value="runOnceForEachItem",
                        description="Code runs once per item",
                    ),
                ),
            ),
            NodeProperty(
                display_name="Python Code",
                name="code",
                type="json",
                default="return items",
                type_options={"language": "python", "rows": 15},
                description="""Available variables:
- items: all input items as {"json": {...}} dicts
- item: the current item's json (first item's json when running once for all items)
- input: input.all(), input.first(), input.last()

Return a list of {"json": {...}} objects, a single dict, or a value.

Note: Code runs in a restricted environment with a time limit.
Imports and underscore-prefixed names are rejected.""",
            ),
        ),
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        from ...engine.sandbox import evaluate

        code = self.get_parameter(node_definition, "code", "return items")
        mode = self.get_parameter(node_definition, "mode", "runOnceForAllItems")
        items = [{"json": item.json} for item in input_data]

        if mode == "runOnceForEachItem":
            output: list[NodeData] = []
            for entry in items:
                result = await evaluate(
                    code,
                    {"items": items, "item": entry["json"]},
                    timeout=context.code_timeout,
                )
                output.extend(self._normalize_output(result))
            return self.output(output)

        result = await evaluate(
            code,
            {"items": items, "item": items[0]["json"] if items else {}},
            timeout=context.code_timeout,
        )
        return self.output(self._normalize_output(result))

    def _normalize_output(self, result: Any) -> list[NodeData]:
        """Normalize code output to NodeData list."""
        from ...engine.types import NodeData

        if result is None:
            return []

        if not isinstance(result, list):
            result = [result]

        output = []
        for item in result:
            if isinstance(item, dict):
                if "json" in item and isinstance(item["json"], dict):
                    output.append(NodeData(json=item["json"]))
                else:
                    output.append(NodeData(json=item))
            else:
                output.append(NodeData(json={"value": item}))
        return output
