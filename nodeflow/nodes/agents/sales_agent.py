"""Sales agent node."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from ..base import (
    NodeTypeDescription,
    NodeInputDefinition,
    NodeOutputDefinition,
    NodeProperty,
    NodePropertyOption,
)
from .base_agent import AgentNode
from .prompts import sales_system_prompt, sales_user_prompt

if TYPE_CHECKING:
    from ...engine.llm_provider import TextCompletion
    from ...engine.types import NodeData


class SalesAgentNode(AgentNode):
    """Lead qualification, proposals and follow-ups."""

    node_description = NodeTypeDescription(
        name="SalesAgent",
        display_name="Sales Agent",
        description="AI agent specialised in sales tasks",
        category="ai",
        icon="fa:handshake",
        group=("ai",),
        inputs=(NodeInputDefinition(name="main", display_name="Input"),),
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Sales Task",
                name="salesTask",
                type="options",
                default="lead_qualification",
                options=(
                    NodePropertyOption(name="Lead Qualification", value="lead_qualification"),
                    NodePropertyOption(name="Proposal Writing", value="proposal_writing"),
                    NodePropertyOption(name="Follow-up Email", value="follow_up_email"),
                    NodePropertyOption(name="Objection Handling", value="objection_handling"),
                    NodePropertyOption(name="Sales Script", value="sales_script"),
                    NodePropertyOption(name="Deal Analysis", value="deal_analysis"),
                ),
            ),
            NodeProperty(
                display_name="Product/Service",
                name="product",
                type="string",
                default="",
                required=True,
            ),
            NodeProperty(
                display_name="Customer Information",
                name="customerInfo",
                type="string",
                default="",
                type_options={"rows": 3},
            ),
            NodeProperty(
                display_name="Sales Stage",
                name="salesStage",
                type="options",
                default="prospecting",
                options=(
                    NodePropertyOption(name="Prospecting", value="prospecting"),
                    NodePropertyOption(name="Discovery", value="discovery"),
                    NodePropertyOption(name="Proposal", value="proposal"),
                    NodePropertyOption(name="Negotiation", value="negotiation"),
                    NodePropertyOption(name="Closing", value="closing"),
                    NodePropertyOption(name="Follow-up", value="follow_up"),
                ),
            ),
            NodeProperty(
                display_name="Context",
                name="context",
                type="string",
                default="",
                type_options={"rows": 3},
            ),
            NodeProperty(display_name="Model", name="model", type="string", default="gpt-4"),
        ),
    )

    def error_fields(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"task": params.get("salesTask")}

    async def run_item(
        self,
        llm: TextCompletion,
        params: dict[str, Any],
        item: NodeData,
    ) -> dict[str, Any]:
        task = params["salesTask"]
        stage = params.get("salesStage") or "prospecting"
        product = params.get("product") or item.json.get("product") or ""
        customer_info = params.get("customerInfo") or ""
        result = await llm.complete(
            model=params["model"],
            system=sales_system_prompt(task, stage),
            prompt=sales_user_prompt(task, product, customer_info, params.get("context") or ""),
            temperature=0.7,
            max_tokens=2000,
        )
        return {
            "content": result.text,
            "task": task,
            "product": product,
            "customerInfo": customer_info,
            "salesStage": stage,
        }
