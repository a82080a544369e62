"""OpenAI agent node - general purpose chat completion."""

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

if TYPE_CHECKING:
    from ...engine.llm_provider import TextCompletion
    from ...engine.types import NodeData


class OpenAIAgentNode(AgentNode):
    """Send a system and user message to a chat model for every item."""

    node_description = NodeTypeDescription(
        name="OpenAIAgent",
        display_name="OpenAI Agent",
        description="Generate a response with an AI chat model",
        category="ai",
        icon="fa:robot",
        group=("ai",),
        inputs=(NodeInputDefinition(name="main", display_name="Input"),),
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Model",
                name="model",
                type="options",
                default="gpt-3.5-turbo",
                options=(
                    NodePropertyOption(name="GPT-3.5 Turbo", value="gpt-3.5-turbo"),
                    NodePropertyOption(name="GPT-4", value="gpt-4"),
                    NodePropertyOption(name="GPT-4 Turbo", value="gpt-4-turbo-preview"),
                ),
                description="Model to use",
            ),
            NodeProperty(
                display_name="System Message",
                name="systemMessage",
                type="string",
                default="You are a helpful AI assistant.",
                type_options={"rows": 4},
            ),
            NodeProperty(
                display_name="User Message",
                name="userMessage",
                type="string",
                default="",
                required=True,
                type_options={"rows": 4},
                description="Message to send. Supports expressions such as {{ $json.question }}.",
            ),
            NodeProperty(
                display_name="Temperature",
                name="temperature",
                type="number",
                default=0.7,
                type_options={"minValue": 0, "maxValue": 2},
            ),
            NodeProperty(
                display_name="Max Tokens",
                name="maxTokens",
                type="number",
                default=1000,
            ),
        ),
    )

    async def run_item(
        self,
        llm: TextCompletion,
        params: dict[str, Any],
        item: NodeData,
    ) -> dict[str, Any]:
        user_message = params.get("userMessage") or item.json.get("input") or ""
        if not user_message:
            raise ValueError("User message is empty")

        result = await llm.complete(
            model=params["model"],
            system=params.get("systemMessage") or "",
            prompt=str(user_message),
            temperature=float(params.get("temperature", 0.7)),
            max_tokens=int(params["maxTokens"]) if params.get("maxTokens") else None,
        )
        return {"response": result.text, "model": result.model, "usage": result.usage}
