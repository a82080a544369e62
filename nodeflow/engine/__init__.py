"""Core workflow engine components."""

from .types import (
    Connection,
    ExecutionContext,
    ExecutionRecord,
    NodeData,
    NodeDefinition,
    NodeExecutionResult,
    NodeOutput,
    RunResult,
    RunState,
    TriggerKind,
    TriggerResult,
    WorkflowStructure,
)
from .expression_engine import ExpressionEngine, ExpressionContext, expression_engine
from .graph_compiler import Edge, EdgeKind, ExecutionPlan, compile
from .node_registry import NodeRegistry, create_default_registry, register_all_nodes
from .workflow_runner import WorkflowRunner

__all__ = [
    "Connection",
    "ExecutionContext",
    "ExecutionRecord",
    "NodeData",
    "NodeDefinition",
    "NodeExecutionResult",
    "NodeOutput",
    "RunResult",
    "RunState",
    "TriggerKind",
    "TriggerResult",
    "WorkflowStructure",
    "ExpressionEngine",
    "ExpressionContext",
    "expression_engine",
    "Edge",
    "EdgeKind",
    "ExecutionPlan",
    "compile",
    "NodeRegistry",
    "create_default_registry",
    "register_all_nodes",
    "WorkflowRunner",
]
