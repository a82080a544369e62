"""Set node - set fields on items."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from ..base import (
    BaseNode,
    NodeTypeDescription,
    NodeInputDefinition,
    NodeOutputDefinition,
    NodeProperty,
    set_nested_value,
)

if TYPE_CHECKING:
    from ...engine.types import ExecutionContext, NodeData, NodeDefinition, NodeExecutionResult


class SetNode(BaseNode):
    """Set node - merge configured values into each item, or replace it."""

    node_description = NodeTypeDescription(
        name="Set",
        display_name="Set",
        description="Set values on items, merging into or replacing the existing data",
        category="core",
        icon="fa:edit",
        group=("transform",),
        inputs=(NodeInputDefinition(name="main", display_name="Input"),),
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Keep Only Set",
                name="keepOnlySet",
                type="boolean",
                default=False,
                description="If true, removes all existing fields and only keeps new ones",
            ),
            NodeProperty(
                display_name="Values to Set",
                name="values",
                type="collection",
                default=[],
                type_options={"multipleValues": True},
                description="Name/value pairs. Names support dot notation, values support {{ }} expressions.",
            ),
        ),
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        from ...engine.types import NodeData
        from ...engine.expression_engine import expression_engine, ExpressionEngine

        keep_only_set = bool(self.get_parameter(node_definition, "keepOnlySet", False))
        values = self._normalize_values(self.get_parameter(node_definition, "values", []))

        results: list[NodeData] = []
        items = input_data if input_data else [NodeData(json={})]

        for idx, item in enumerate(items):
            new_json: dict[str, Any] = {} if keep_only_set else dict(item.json)

            expr_context = ExpressionEngine.create_context(
                current_data=items,
                run_state=context.run_state,
                execution_id=context.execution_id,
                item_index=idx,
                mode=context.mode,
            )
            for name, raw_value in values:
                set_nested_value(new_json, name, expression_engine.resolve(raw_value, expr_context))

            results.append(NodeData(json=new_json, binary=item.binary))

        return self.output(results)

    def _normalize_values(self, values: Any) -> list[tuple[str, Any]]:
        """Accept either a list of {name, value} entries or a plain mapping."""
        if isinstance(values, dict):
            return [(str(k), v) for k, v in values.items() if k]
        pairs = []
        for entry in values or []:
            if isinstance(entry, dict) and entry.get("name"):
                pairs.append((str(entry["name"]), entry.get("value")))
        return pairs
