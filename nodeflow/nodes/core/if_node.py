"""If node - route items based on conditions (true/false outputs)."""

from __future__ import annotations

import re
from typing import Any, TYPE_CHECKING

from ..base import (
    BaseNode,
    NodeTypeDescription,
    NodeInputDefinition,
    NodeOutputDefinition,
    NodeProperty,
    NodePropertyOption,
    get_nested_value,
)

if TYPE_CHECKING:
    from ...engine.types import ExecutionContext, NodeData, NodeDefinition, NodeExecutionResult

from ...engine.expression_engine import expression_engine, ExpressionEngine

OPERATIONS = (
    ("Equals", "equals"),
    ("Not Equals", "notEquals"),
    ("Contains", "contains"),
    ("Not Contains", "notContains"),
    ("Greater Than", "gt"),
    ("Greater or Equal", "gte"),
    ("Less Than", "lt"),
    ("Less or Equal", "lte"),
    ("Is Empty", "isEmpty"),
    ("Is Not Empty", "isNotEmpty"),
    ("Is True", "isTrue"),
    ("Is False", "isFalse"),
    ("Regex Match", "regex"),
)


class IfNode(BaseNode):
    """If node - route items based on conditions with true/false outputs."""

    node_description = NodeTypeDescription(
        name="If",
        display_name="If",
        description="Route items based on conditions (true/false outputs)",
        category="core",
        icon="fa:code-branch",
        group=("flow",),
        inputs=(NodeInputDefinition(name="main", display_name="Input"),),
        outputs=(
            NodeOutputDefinition(name="true", display_name="True"),
            NodeOutputDefinition(name="false", display_name="False"),
        ),
        properties=(
            NodeProperty(
                display_name="Conditions",
                name="conditions",
                type="collection",
                default=[],
                type_options={"multipleValues": True},
                description="Each condition is {field, operation, value}. Field supports dot notation.",
            ),
            NodeProperty(
                display_name="Combine",
                name="combineOperation",
                type="options",
                default="all",
                options=(
                    NodePropertyOption(name="ALL", value="all", description="Every condition must match"),
                    NodePropertyOption(name="ANY", value="any", description="At least one condition must match"),
                ),
            ),
            NodeProperty(
                display_name="Condition Expression",
                name="condition",
                type="string",
                default="",
                placeholder="{{ $json.score >= 70 }}",
                description="Expression that evaluates to true/false. If provided, conditions are ignored.",
            ),
        ),
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        condition = self.get_parameter(node_definition, "condition", "")
        conditions = self.get_parameter(node_definition, "conditions", [])
        combine = self.get_parameter(node_definition, "combineOperation", "all")

        true_output: list[NodeData] = []
        false_output: list[NodeData] = []

        for idx, item in enumerate(input_data):
            expr_context = ExpressionEngine.create_context(
                input_data,
                context.run_state,
                context.execution_id,
                item_index=idx,
                mode=context.mode,
            )
            if condition:
                result = self._is_truthy(expression_engine.resolve(condition, expr_context))
            else:
                checks = (
                    self._evaluate(
                        get_nested_value(item.json, c.get("field", "")),
                        c.get("operation", "isTrue"),
                        expression_engine.resolve(c.get("value"), expr_context),
                    )
                    for c in conditions
                    if isinstance(c, dict)
                )
                result = any(checks) if combine == "any" else all(checks)

            if result:
                true_output.append(item)
            else:
                false_output.append(item)

        return self.outputs({"true": true_output, "false": false_output})

    def _is_truthy(self, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() not in ("", "false", "0", "none", "null") and not value.startswith(
                "[Expression Error"
            )
        return bool(value)

    def _evaluate(self, field_value: Any, operation: str, compare_value: Any) -> bool:
        """Evaluate the condition."""
        if operation == "equals":
            return self._loose_equals(field_value, compare_value)
        elif operation == "notEquals":
            return not self._loose_equals(field_value, compare_value)
        elif operation == "contains":
            return str(compare_value) in str(field_value)
        elif operation == "notContains":
            return str(compare_value) not in str(field_value)
        elif operation in ("gt", "gte", "lt", "lte"):
            try:
                left, right = float(field_value), float(compare_value)
            except (ValueError, TypeError):
                return False
            return {
                "gt": left > right,
                "gte": left >= right,
                "lt": left < right,
                "lte": left <= right,
            }[operation]
        elif operation == "isEmpty":
            return field_value is None or field_value == "" or field_value == [] or field_value == {}
        elif operation == "isNotEmpty":
            return not self._evaluate(field_value, "isEmpty", compare_value)
        elif operation == "isTrue":
            return field_value is True or field_value == "true" or field_value == 1
        elif operation == "isFalse":
            return field_value is False or field_value == "false" or field_value == 0
        elif operation == "regex":
            try:
                return bool(re.search(str(compare_value), str(field_value)))
            except re.error:
                return False
        else:
            return bool(field_value)

    def _loose_equals(self, left: Any, right: Any) -> bool:
        """Values from the editor arrive as strings; compare those against typed fields by text."""
        if left == right:
            return True
        if isinstance(right, str) and not isinstance(left, (dict, list)):
            if isinstance(left, bool):
                return str(left).lower() == right.lower()
            return left is not None and str(left) == right
        return False
