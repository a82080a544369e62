"""AI agent nodes backed by the text-completion capability."""

from .openai_agent import OpenAIAgentNode
from .marketing_agent import MarketingAgentNode
from .sales_agent import SalesAgentNode
from .agent_chain import AgentChainNode

__all__ = [
    "OpenAIAgentNode",
    "MarketingAgentNode",
    "SalesAgentNode",
    "AgentChainNode",
]
