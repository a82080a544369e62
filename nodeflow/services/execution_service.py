"""Execution service - compiles stored workflows and runs them."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, TYPE_CHECKING

from ..core.config import Settings, get_settings
from ..core.exceptions import ExecutionNotFoundError, WorkflowEngineError
from ..engine.graph_compiler import compile
from ..engine.types import (
    ExecutionContext,
    ExecutionMode,
    ExecutionRecord,
    NodeData,
    RunResult,
    TriggerKind,
)
from ..engine.workflow_runner import WorkflowRunner, new_execution_id

if TYPE_CHECKING:
    from ..engine.graph_compiler import ExecutionPlan
    from ..engine.llm_provider import TextCompletion
    from ..engine.node_registry import NodeRegistry
    from ..storage import ExecutionStore, WorkflowStore

logger = logging.getLogger(__name__)


def to_items(input_data: Any) -> list[NodeData]:
    """Turn a JSON object or list of objects into node items."""
    if input_data is None:
        return []
    if isinstance(input_data, NodeData):
        return [input_data]
    if isinstance(input_data, dict):
        return [NodeData(json=dict(input_data))]
    return [item if isinstance(item, NodeData) else NodeData(json=dict(item)) for item in input_data]


class ExecutionService:
    """
    Runs workflows on behalf of the API and the trigger registry.

    `execute` runs a workflow to completion and reports the outcome. `launch`
    records an execution and runs it as a background task; its status is
    read back through `get_status`.
    """

    def __init__(
        self,
        workflow_store: WorkflowStore,
        execution_store: ExecutionStore,
        node_registry: NodeRegistry,
        runner: WorkflowRunner | None = None,
        llm: TextCompletion | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._workflow_store = workflow_store
        self._execution_store = execution_store
        self._node_registry = node_registry
        self._runner = runner or WorkflowRunner()
        self._llm = llm
        self._settings = settings or get_settings()
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def compile_workflow(self, workflow_id: str, entry_point: str | None = None) -> ExecutionPlan:
        """
        Compile a stored workflow.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist
            GraphStructureError: If the graph cannot be compiled
            UnknownNodeTypeError: If a node type is not registered
        """
        structure = self._workflow_store.get_workflow_structure(workflow_id)
        return compile(
            structure.nodes,
            structure.connections,
            self._node_registry,
            entry_point=entry_point,
        )

    async def execute(
        self,
        workflow_id: str,
        trigger_kind: TriggerKind | str = TriggerKind.MANUAL,
        input_data: Any = None,
        entry_point: str | None = None,
    ) -> dict[str, Any]:
        """
        Run a workflow to completion.

        Compile errors are raised; node failures are reported in the result.
        """
        mode: ExecutionMode = TriggerKind(trigger_kind).value
        plan = self.compile_workflow(workflow_id, entry_point)
        items = to_items(input_data)

        execution_id = new_execution_id()
        self._execution_store.start(execution_id, workflow_id, mode, items)

        started = time.perf_counter()
        result = await self._run(plan, execution_id, workflow_id, mode, items)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        self._execution_store.complete(execution_id, result)
        return self._summarize(execution_id, result, elapsed_ms)

    async def launch(
        self,
        workflow_id: str,
        trigger_node_id: str,
        items: list[NodeData],
        mode: ExecutionMode,
        credentials: dict[str, Any] | None = None,
    ) -> str:
        """
        Start a workflow run in the background from a trigger node.

        Always creates an execution record; a workflow that cannot be compiled
        is recorded as a failed execution.

        Returns:
            The execution ID
        """
        execution_id = new_execution_id()
        self._execution_store.start(execution_id, workflow_id, mode, items)

        task = asyncio.create_task(
            self._run_launched(execution_id, workflow_id, trigger_node_id, items, mode, credentials),
            name=f"execution-{execution_id}",
        )
        self._tasks[execution_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(execution_id, None))

        logger.info(
            "Launched execution %s of workflow %s from node %s (%s)",
            execution_id, workflow_id, trigger_node_id, mode,
        )
        return execution_id

    def get_status(self, execution_id: str) -> dict[str, Any]:
        """
        Status of an execution.

        Raises:
            ExecutionNotFoundError: If no execution has this ID
        """
        record = self.get(execution_id)
        status: dict[str, Any] = {
            "executionId": record.id,
            "workflowId": record.workflow_id,
            "status": record.status,
            "itemErrorCount": record.item_error_count,
        }
        if record.output is not None:
            status["outputData"] = record.output
        if record.error:
            status["error"] = record.error
            status["errorNodeId"] = record.error_node_id
        return status

    def get(self, execution_id: str) -> ExecutionRecord:
        record = self._execution_store.get(execution_id)
        if record is None:
            raise ExecutionNotFoundError(execution_id)
        return record

    def list(self, workflow_id: str | None = None) -> list[ExecutionRecord]:
        return self._execution_store.list(workflow_id)

    def stats(self) -> dict[str, Any]:
        return {**self._execution_store.stats(), "running": len(self._tasks)}

    async def cancel(self, execution_id: str) -> bool:
        """Cancel a launched execution that is still running."""
        self.get(execution_id)
        task = self._tasks.get(execution_id)
        if task is None:
            return False
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return True

    async def shutdown(self) -> None:
        """Cancel every launched execution that is still running."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if tasks:
            logger.info("Cancelled %d running execution(s)", len(tasks))

    async def _run_launched(
        self,
        execution_id: str,
        workflow_id: str,
        trigger_node_id: str,
        items: list[NodeData],
        mode: ExecutionMode,
        credentials: dict[str, Any] | None,
    ) -> None:
        try:
            plan = self.compile_workflow(workflow_id, entry_point=trigger_node_id)
        except WorkflowEngineError as e:
            logger.warning("Execution %s could not start: %s", execution_id, e.message)
            self._execution_store.fail(execution_id, e.message)
            return

        try:
            result = await self._run(plan, execution_id, workflow_id, mode, items, credentials)
        except asyncio.CancelledError:
            self._execution_store.cancel(execution_id)
            logger.info("Execution %s cancelled", execution_id)
            raise

        self._execution_store.complete(execution_id, result)
        if not result.success:
            logger.warning("Execution %s failed: %s", execution_id, result.error)

    async def _run(
        self,
        plan: ExecutionPlan,
        execution_id: str,
        workflow_id: str,
        mode: ExecutionMode,
        items: list[NodeData],
        credentials: dict[str, Any] | None = None,
    ) -> RunResult:
        context = ExecutionContext(
            execution_id=execution_id,
            workflow_id=workflow_id,
            mode=mode,
            credentials=dict(credentials or {}),
            llm=self._llm,
            code_timeout=self._settings.code_timeout,
        )
        return await self._runner.run(
            plan,
            self._node_registry,
            items,
            context=context,
            timeout=self._settings.execution_timeout,
        )

    def _summarize(self, execution_id: str, result: RunResult, elapsed_ms: int) -> dict[str, Any]:
        summary: dict[str, Any] = {
            "success": result.success,
            "executionId": execution_id,
            "executionTimeMs": elapsed_ms,
            "perNodeResults": {
                node_id: [item.json for item in output.items]
                for node_id, output in result.per_node_outputs.items()
            },
            "executedNodes": list(result.executed_nodes),
            "itemErrorCount": result.item_error_count,
        }
        if result.success:
            summary["outputData"] = [item.json for item in result.final_output]
        else:
            summary["error"] = result.error
            summary["errorNodeId"] = result.error_node_id
        return summary
