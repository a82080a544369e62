"""Shared per-item loop for agent nodes."""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any, TYPE_CHECKING

from ...core.config import get_settings
from ..base import BaseNode, utc_timestamp

if TYPE_CHECKING:
    from ...engine.llm_provider import TextCompletion
    from ...engine.types import ExecutionContext, NodeData, NodeDefinition, NodeExecutionResult

logger = logging.getLogger(__name__)


class AgentNode(BaseNode):
    """
    Base for nodes that call the text-completion capability once per item.

    Subclasses turn one item's resolved parameters into an output dict. An
    exception for one item becomes an error item; the rest of the batch
    still runs.
    """

    @abstractmethod
    async def run_item(
        self,
        llm: TextCompletion,
        params: dict[str, Any],
        item: NodeData,
    ) -> dict[str, Any]:
        ...

    def error_fields(self, params: dict[str, Any]) -> dict[str, Any]:
        """Extra fields copied onto an error item."""
        return {}

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        from ...engine.expression_engine import ExpressionEngine, expression_engine
        from ...engine.llm_provider import SdkTextCompletion
        from ...engine.types import NodeData

        llm = context.llm or SdkTextCompletion()
        defaults = {prop.name: prop.default for prop in self.node_description.properties}
        results: list[NodeData] = []

        for idx, item in enumerate(input_data):
            expr_context = ExpressionEngine.create_context(
                input_data,
                context.run_state,
                context.execution_id,
                item_index=idx,
                mode=context.mode,
            )
            params = {**defaults, **expression_engine.resolve(node_definition.parameters, expr_context)}
            params["model"] = params.get("model") or get_settings().default_model
            try:
                output = await self.run_item(llm, params, item)
            except Exception as e:
                logger.warning("%s failed for item %d of node %s: %s", self.type, idx, node_definition.id, e)
                results.append(NodeData.error_item(
                    str(e) or type(e).__name__,
                    **self.error_fields(params),
                    timestamp=utc_timestamp(),
                ))
                continue
            results.append(NodeData(json={**output, "timestamp": utc_timestamp()}))

        return self.output(results)
