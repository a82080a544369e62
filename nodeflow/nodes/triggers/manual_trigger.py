"""Manual trigger node - starts a workflow on demand."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base import (
    BaseNode,
    NodeTypeDescription,
    NodeOutputDefinition,
    NodeProperty,
    utc_timestamp,
)

if TYPE_CHECKING:
    from ...engine.types import ExecutionContext, NodeData, NodeDefinition, NodeExecutionResult


class ManualTriggerNode(BaseNode):
    """Emits a single item carrying the payload it was triggered with."""

    node_description = NodeTypeDescription(
        name="ManualTrigger",
        display_name="Manual Trigger",
        description="Start the workflow manually with an optional JSON payload",
        category="triggers",
        icon="fa:mouse-pointer",
        group=("trigger",),
        inputs=(),
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Execution Data",
                name="executionData",
                type="json",
                default={},
                type_options={"language": "json", "rows": 6},
                description="Data passed to the workflow when it is triggered manually",
            ),
        ),
        is_trigger=True,
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        from ...engine.types import NodeData

        # Items handed in by the trigger registry are already trigger events
        if input_data:
            return self.output(input_data)

        data = self.get_json_parameter(node_definition, "executionData", {})
        return self.output([
            NodeData(json={
                "timestamp": utc_timestamp(),
                "triggeredBy": "manual",
                "data": data if data is not None else {},
            })
        ])
