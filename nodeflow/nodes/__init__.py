"""Workflow node implementations."""

from .base import BaseNode
from .triggers import ManualTriggerNode, WebhookNode, ScheduleTriggerNode, EmailTriggerNode
from .core import HttpRequestNode, SetNode, IfNode, CodeNode, MergeNode
from .agents import OpenAIAgentNode, MarketingAgentNode, SalesAgentNode, AgentChainNode

__all__ = [
    "BaseNode",
    # Triggers
    "ManualTriggerNode",
    "WebhookNode",
    "ScheduleTriggerNode",
    "EmailTriggerNode",
    # Core
    "HttpRequestNode",
    "SetNode",
    "IfNode",
    "CodeNode",
    "MergeNode",
    # AI
    "OpenAIAgentNode",
    "MarketingAgentNode",
    "SalesAgentNode",
    "AgentChainNode",
]
