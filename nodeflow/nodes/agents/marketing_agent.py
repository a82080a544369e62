"""Marketing agent node."""

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
from .prompts import marketing_system_prompt, marketing_user_prompt

if TYPE_CHECKING:
    from ...engine.llm_provider import TextCompletion
    from ...engine.types import NodeData


class MarketingAgentNode(AgentNode):
    """Marketing copy, SEO and campaign content."""

    node_description = NodeTypeDescription(
        name="MarketingAgent",
        display_name="Marketing Agent",
        description="AI agent specialised in marketing content and campaigns",
        category="ai",
        icon="fa:bullhorn",
        group=("ai",),
        inputs=(NodeInputDefinition(name="main", display_name="Input"),),
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Marketing Task",
                name="marketingTask",
                type="options",
                default="content_creation",
                options=(
                    NodePropertyOption(name="Content Creation", value="content_creation"),
                    NodePropertyOption(name="SEO Optimization", value="seo_optimization"),
                    NodePropertyOption(name="Social Media Posts", value="social_media"),
                    NodePropertyOption(name="Email Campaign", value="email_campaign"),
                    NodePropertyOption(name="Product Description", value="product_description"),
                    NodePropertyOption(name="Ad Copy", value="ad_copy"),
                ),
            ),
            NodeProperty(
                display_name="Topic",
                name="topic",
                type="string",
                default="",
                required=True,
                placeholder="Launch of our new analytics dashboard",
            ),
            NodeProperty(
                display_name="Target Audience",
                name="targetAudience",
                type="string",
                default="",
            ),
            NodeProperty(
                display_name="Brand Voice",
                name="brandVoice",
                type="options",
                default="professional",
                options=(
                    NodePropertyOption(name="Professional", value="professional"),
                    NodePropertyOption(name="Casual", value="casual"),
                    NodePropertyOption(name="Friendly", value="friendly"),
                    NodePropertyOption(name="Authoritative", value="authoritative"),
                    NodePropertyOption(name="Playful", value="playful"),
                ),
            ),
            NodeProperty(
                display_name="Additional Instructions",
                name="additionalInstructions",
                type="string",
                default="",
                type_options={"rows": 3},
            ),
            NodeProperty(display_name="Model", name="model", type="string", default="gpt-4"),
        ),
    )

    def error_fields(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"task": params.get("marketingTask")}

    async def run_item(
        self,
        llm: TextCompletion,
        params: dict[str, Any],
        item: NodeData,
    ) -> dict[str, Any]:
        task = params["marketingTask"]
        topic = params.get("topic") or item.json.get("topic") or ""
        result = await llm.complete(
            model=params["model"],
            system=marketing_system_prompt(task, params.get("targetAudience") or "", params.get("brandVoice") or ""),
            prompt=marketing_user_prompt(task, topic, params.get("additionalInstructions") or ""),
            temperature=0.7,
            max_tokens=2000,
        )
        return {
            "content": result.text,
            "task": task,
            "topic": topic,
            "targetAudience": params.get("targetAudience"),
            "brandVoice": params.get("brandVoice"),
        }
