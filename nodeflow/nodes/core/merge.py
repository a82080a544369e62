"""Merge node - combine data from two workflow branches."""

from __future__ import annotations

from typing import TYPE_CHECKING

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


class MergeNode(BaseNode):
    """Merge node - combine the items arriving on input1 and input2."""

    node_description = NodeTypeDescription(
        name="Merge",
        display_name="Merge",
        description="Combine data from two workflow branches",
        category="core",
        icon="fa:compress-arrows-alt",
        group=("flow",),
        inputs=(
            NodeInputDefinition(name="input1", display_name="Input 1", required=True),
            NodeInputDefinition(name="input2", display_name="Input 2", required=True),
        ),
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Mode",
                name="mode",
                type="options",
                default="append",
                options=(
                    NodePropertyOption(
                        name="Append",
                        value="append",
                        description="Items of input 1, then items of input 2",
                    ),
                    NodePropertyOption(
                        name="Pass-through",
                        value="passThrough",
                        description="Output the items of one input only",
                    ),
                    NodePropertyOption(
                        name="Wait",
                        value="wait",
                        description="Output both inputs only once both have items",
                    ),
                ),
            ),
            NodeProperty(
                display_name="Output Data",
                name="outputData",
                type="options",
                default="input1",
                options=(
                    NodePropertyOption(name="Input 1", value="input1"),
                    NodePropertyOption(name="Input 2", value="input2"),
                ),
                display_options={"show": {"mode": ["passThrough"]}},
            ),
        ),
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        mode = self.get_parameter(node_definition, "mode", "append")

        # Per-port batches are staged by the runner; fall back to the flat batch
        port_inputs = context.pending_inputs.get(node_definition.id)
        if port_inputs is None:
            port_inputs = {"input1": list(input_data), "input2": []}
        input1 = port_inputs.get("input1", [])
        input2 = port_inputs.get("input2", [])

        if mode == "append":
            return self.output([*input1, *input2])

        if mode == "passThrough":
            selected = self.get_parameter(node_definition, "outputData", "input1")
            return self.output(list(input2 if selected == "input2" else input1))

        if mode == "wait":
            if not input1 or not input2:
                return self.output([])
            return self.output([*input1, *input2])

        return self.output(list(input1))
