"""Trigger nodes - start workflow execution."""

from .manual_trigger import ManualTriggerNode
from .webhook import WebhookNode
from .schedule_trigger import ScheduleTriggerNode
from .email_trigger import EmailTriggerNode

__all__ = [
    "ManualTriggerNode",
    "WebhookNode",
    "ScheduleTriggerNode",
    "EmailTriggerNode",
]
