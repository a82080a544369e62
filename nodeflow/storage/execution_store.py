"""In-memory execution history storage."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ..engine.types import ExecutionMode, ExecutionRecord, NodeData, RunResult


def _items_to_json(items: list[NodeData]) -> list[dict[str, Any]]:
    return [item.json for item in items]


class ExecutionStore:
    """In-memory execution history, capped at max_records entries."""

    def __init__(self, max_records: int = 1000) -> None:
        self._executions: dict[str, ExecutionRecord] = {}
        self._max_records = max_records

    def start(
        self,
        execution_id: str,
        workflow_id: str,
        mode: ExecutionMode,
        input_items: list[NodeData] | None = None,
    ) -> ExecutionRecord:
        """Create a running execution record."""
        record = ExecutionRecord(
            id=execution_id,
            workflow_id=workflow_id,
            status="running",
            mode=mode,
            start_time=datetime.now(),
            input=_items_to_json(input_items or []),
        )
        self._executions[execution_id] = record
        self._cleanup()
        return record

    def complete(self, execution_id: str, result: RunResult) -> ExecutionRecord | None:
        """Copy a finished run onto its record."""
        record = self._executions.get(execution_id)
        if record is None:
            return None

        record.status = "completed" if result.success else "failed"
        record.end_time = datetime.now()
        record.output = _items_to_json(result.final_output) if result.success else None
        record.error = result.error
        record.error_node_id = result.error_node_id
        record.executed_nodes = list(result.executed_nodes)
        record.node_outputs = {
            node_id: _items_to_json(output.items)
            for node_id, output in result.per_node_outputs.items()
        }
        record.item_error_count = result.item_error_count
        return record

    def fail(self, execution_id: str, error: str) -> ExecutionRecord | None:
        """Mark a record failed before any node ran."""
        record = self._executions.get(execution_id)
        if record is None:
            return None
        record.status = "failed"
        record.end_time = datetime.now()
        record.error = error
        return record

    def cancel(self, execution_id: str) -> ExecutionRecord | None:
        record = self._executions.get(execution_id)
        if record is None or record.status != "running":
            return record
        record.status = "cancelled"
        record.end_time = datetime.now()
        return record

    def get(self, execution_id: str) -> ExecutionRecord | None:
        """Get an execution record by ID."""
        return self._executions.get(execution_id)

    def list(self, workflow_id: str | None = None) -> list[ExecutionRecord]:
        """List execution records, newest first, optionally filtered by workflow ID."""
        records = list(self._executions.values())
        if workflow_id:
            records = [r for r in records if r.workflow_id == workflow_id]
        records.sort(key=lambda r: r.start_time, reverse=True)
        return records

    def stats(self) -> dict[str, Any]:
        """Counts by status plus average duration of finished runs."""
        by_status: dict[str, int] = {}
        durations = []
        for record in self._executions.values():
            by_status[record.status] = by_status.get(record.status, 0) + 1
            if record.duration_ms is not None:
                durations.append(record.duration_ms)

        return {
            "total": len(self._executions),
            "byStatus": by_status,
            "withItemErrors": sum(1 for r in self._executions.values() if r.item_error_count > 0),
            "averageDurationMs": sum(durations) / len(durations) if durations else None,
        }

    def _cleanup(self) -> None:
        """Remove the oldest records when over max."""
        if len(self._executions) > self._max_records:
            sorted_records = sorted(self._executions.items(), key=lambda x: x[1].start_time)
            to_delete = sorted_records[: len(sorted_records) - self._max_records]
            for exec_id, _ in to_delete:
                del self._executions[exec_id]
