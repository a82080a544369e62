"""
Workflow runner - walks a compiled execution plan.

Execution is sequential and depth-first: one node at a time from the entry
point, following each node's edge until a terminal node or an unresolved
conditional edge is reached.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

import httpx

from ..core.config import settings
from .types import (
    ExecutionContext,
    NodeData,
    NodeDefinition,
    NodeExecutionResult,
    NodeOutput,
    RunResult,
    RunState,
)

if TYPE_CHECKING:
    from ..nodes.base import BaseNode, NodeTypeDescription
    from .graph_compiler import ExecutionPlan
    from .node_registry import NodeRegistry

logger = logging.getLogger(__name__)


def new_execution_id() -> str:
    return f"exec_{int(datetime.now().timestamp() * 1000)}_{uuid.uuid4().hex[:7]}"


class WorkflowRunner:
    """Executes compiled workflow plans."""

    async def run(
        self,
        plan: ExecutionPlan,
        registry: NodeRegistry,
        initial_input: list[NodeData] | None = None,
        context: ExecutionContext | None = None,
        timeout: float | None = None,
    ) -> RunResult:
        """
        Run a plan from its entry point.

        Args:
            plan: Compiled execution plan
            registry: Node type registry used to create node executors
            initial_input: Items delivered to the entry node
            context: Execution context; a fresh one is created when omitted
            timeout: Optional wall-clock budget for the whole run, in seconds

        Returns:
            RunResult with the final output, per-node outputs and any error
        """
        if context is None:
            context = ExecutionContext(execution_id=new_execution_id())
        else:
            context.run_state = RunState()

        owns_client = context.http_client is None
        if owns_client:
            context.http_client = httpx.AsyncClient(timeout=settings.http_timeout)

        try:
            if timeout is None:
                return await self._walk(plan, registry, initial_input or [], context)
            try:
                return await asyncio.wait_for(
                    self._walk(plan, registry, initial_input or [], context),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                message = f"Execution timed out after {timeout:g} seconds"
                logger.warning("%s (execution %s)", message, context.execution_id)
                context.run_state.error = message
                return self._result(context.run_state, error=message)
        finally:
            if owns_client:
                await context.http_client.aclose()
                context.http_client = None

    async def _walk(
        self,
        plan: ExecutionPlan,
        registry: NodeRegistry,
        initial_input: list[NodeData],
        context: ExecutionContext,
    ) -> RunResult:
        state = context.run_state
        current: str | None = plan.entry_point

        while current is not None:
            node_def = plan.nodes[current]
            node = registry.create(node_def.type)
            desc = node.node_description

            if current == plan.entry_point:
                port_inputs = {name: list(initial_input) for name in desc.input_names[:1]}
                input_items = list(initial_input)
            else:
                port_inputs = self._gather_inputs(plan, current, desc, state)
                input_items = [item for name in desc.input_names for item in port_inputs[name]]

            context.pending_inputs[current] = port_inputs
            try:
                result = await self._invoke(
                    node, desc, node_def, context, input_items,
                    is_entry=current == plan.entry_point,
                )
            except Exception as e:
                message = f'Node "{current}" ({node_def.type}) failed: {e}'
                logger.error("%s (execution %s)", message, context.execution_id)
                state.error = message
                return self._result(state, error=message, error_node_id=current)
            finally:
                context.pending_inputs.pop(current, None)

            output = self._to_output(desc, result)
            state.record(current, output)
            logger.debug(
                "Node %s exited through %s with %d item(s)",
                current, output.port, len(output.items),
            )

            connection = plan.edges[current].next_connection(output.port)
            current = connection.to_node_id if connection else None

        return self._result(state)

    async def _invoke(
        self,
        node: BaseNode,
        desc: NodeTypeDescription,
        node_def: NodeDefinition,
        context: ExecutionContext,
        input_items: list[NodeData],
        is_entry: bool,
    ) -> NodeExecutionResult:
        # A polling trigger at the entry with nothing handed to it checks its source itself
        if is_entry and desc.is_trigger and desc.supports_polling and not input_items:
            return node.output(await node.poll(context, node_def))
        return await node.execute(context, node_def, input_items)

    def _gather_inputs(
        self,
        plan: ExecutionPlan,
        node_id: str,
        desc: NodeTypeDescription,
        state: RunState,
    ) -> dict[str, list[NodeData]]:
        """Collect each input port's batch from upstream outputs already recorded."""
        port_inputs: dict[str, list[NodeData]] = {name: [] for name in desc.input_names}
        for connection in plan.incoming.get(node_id, ()):
            upstream = state.outputs.get(connection.from_node_id)
            if upstream is None:
                continue
            items = upstream.outputs.get(connection.from_port_id) or []
            port_inputs.setdefault(connection.to_port_id, []).extend(items)
        return port_inputs

    def _to_output(self, desc: NodeTypeDescription, result: NodeExecutionResult) -> NodeOutput:
        outputs = {port: list(items or []) for port, items in result.outputs.items()}
        ordered_ports = desc.output_names + [p for p in outputs if p not in desc.output_names]
        exit_port = next((port for port in ordered_ports if outputs.get(port)), None)
        return NodeOutput(
            port=exit_port,
            items=outputs.get(exit_port, []) if exit_port else [],
            outputs=outputs,
        )

    def _result(
        self,
        state: RunState,
        error: str | None = None,
        error_node_id: str | None = None,
    ) -> RunResult:
        last = state.outputs.get(state.executed_nodes[-1]) if state.executed_nodes else None
        item_errors = sum(
            1
            for output in state.outputs.values()
            for items in output.outputs.values()
            for item in items
            if item.is_error
        )
        return RunResult(
            success=error is None,
            final_output=list(last.items) if last and error is None else [],
            per_node_outputs=dict(state.outputs),
            executed_nodes=list(state.executed_nodes),
            error=error,
            error_node_id=error_node_id,
            item_error_count=item_errors,
        )
