"""Agent chain node - run several agent steps, feeding each output to the next."""

from __future__ import annotations

import json
from typing import Any, TYPE_CHECKING

from ..base import (
    NodeTypeDescription,
    NodeInputDefinition,
    NodeOutputDefinition,
    NodeProperty,
)
from .base_agent import AgentNode
from .prompts import chain_step_system_prompt

if TYPE_CHECKING:
    from ...engine.llm_provider import TextCompletion
    from ...engine.types import NodeData

EXAMPLE_CHAIN = [
    {"type": "analyst", "task": "Summarise the key facts"},
    {"type": "marketing", "task": "Turn the summary into a short announcement"},
]


class AgentChainNode(AgentNode):
    """Chain agents so each step receives the previous step's output."""

    node_description = NodeTypeDescription(
        name="AgentChain",
        display_name="Agent Chain",
        description="Chain multiple AI agents, passing each output to the next step",
        category="ai",
        icon="fa:link",
        group=("ai",),
        inputs=(NodeInputDefinition(name="main", display_name="Input"),),
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Chain Configuration",
                name="chainConfig",
                type="json",
                default=json.dumps(EXAMPLE_CHAIN, indent=2),
                required=True,
                type_options={"language": "json", "rows": 10},
                description='JSON list of steps, each {"type", "task", "instructions"}',
            ),
            NodeProperty(
                display_name="Max Steps",
                name="maxSteps",
                type="number",
                default=5,
                description="Maximum number of steps in the chain",
            ),
            NodeProperty(
                display_name="Initial Input",
                name="initialInput",
                type="string",
                default="",
                placeholder="Initial input for the agent chain...",
                description="The initial input to start the chain; defaults to the item's input field",
            ),
            NodeProperty(display_name="Model", name="model", type="string", default="gpt-4"),
        ),
    )

    async def run_item(
        self,
        llm: TextCompletion,
        params: dict[str, Any],
        item: NodeData,
    ) -> dict[str, Any]:
        chain = params.get("chainConfig")
        if isinstance(chain, str):
            chain = json.loads(chain)
        if not isinstance(chain, list):
            raise ValueError("Chain configuration must be a JSON list of steps")

        max_steps = int(params.get("maxSteps") or len(chain))
        current_input = params.get("initialInput") or item.json.get("input") or ""
        chain_results: list[dict[str, Any]] = []

        for step_index, step in enumerate(chain[:max_steps]):
            if not isinstance(step, dict):
                raise ValueError(f"Chain step {step_index + 1} must be an object")
            result = await llm.complete(
                model=params["model"],
                system=chain_step_system_prompt(step),
                prompt=str(current_input),
                temperature=0.7,
                max_tokens=1500,
            )
            chain_results.append({
                "step": step_index + 1,
                "agent": step,
                "input": current_input,
                "output": result.text,
            })
            current_input = result.text

        return {
            "chainResults": chain_results,
            "finalOutput": current_input,
            "steps": len(chain_results),
        }
