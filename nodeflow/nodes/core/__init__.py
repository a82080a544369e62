"""Core transform and flow nodes."""

from .http_request import HttpRequestNode
from .set_node import SetNode
from .if_node import IfNode
from .code import CodeNode
from .merge import MergeNode

__all__ = [
    "HttpRequestNode",
    "SetNode",
    "IfNode",
    "CodeNode",
    "MergeNode",
]
