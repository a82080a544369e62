"""
Trigger registry - tracks active workflow triggers and drives polling.

Manual triggers fire on request, webhook triggers fire when an inbound path
matches their configured path, and schedule and email triggers each own an
asyncio task that polls on an interval. Firing hands the trigger's items to a
launcher that starts the workflow run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from ..core.config import Settings, get_settings
from ..core.exceptions import TriggerRegistrationError, WebhookHandlerError
from ..engine.types import (
    ExecutionContext,
    ExecutionMode,
    NodeData,
    NodeDefinition,
    TriggerKind,
    TriggerRegistration,
    TriggerResult,
    TriggerStatistics,
    WebhookRequest,
    WebhookResponse,
)
from ..engine.workflow_runner import new_execution_id
from ..nodes.triggers.schedule_trigger import (
    DEFAULT_INTERVAL_SECONDS,
    INTERVAL_SECONDS,
    next_delay,
    validate_schedule,
)

if TYPE_CHECKING:
    from ..engine.node_registry import NodeRegistry

logger = logging.getLogger(__name__)

# launcher(workflow_id, trigger_node_id, items, mode, credentials) -> execution id
Launcher = Callable[
    [str, str, list[NodeData], ExecutionMode, dict[str, Any] | None],
    Awaitable[str],
]

DEFAULT_NODE_TYPES: dict[TriggerKind, str] = {
    TriggerKind.MANUAL: "ManualTrigger",
    TriggerKind.WEBHOOK: "Webhook",
    TriggerKind.SCHEDULE: "ScheduleTrigger",
    TriggerKind.EMAIL: "EmailTrigger",
}


def detect_trigger_kind(node_type: str) -> TriggerKind | None:
    """Guess the trigger kind from a node type name."""
    lowered = node_type.lower()
    for kind in TriggerKind:
        if kind.value in lowered:
            return kind
    return None


def _normalize_path(path: str) -> str:
    return "/" + path.strip("/")


class TriggerRegistry:
    """
    Registry of active triggers keyed by (workflow id, node id).

    Every mutation of the registration and task maps happens under one
    asyncio.Lock. Node poll/webhook calls and launches run outside the lock.
    """

    def __init__(
        self,
        node_registry: NodeRegistry,
        launcher: Launcher | None = None,
        settings: Settings | None = None,
        poll_intervals: dict[str, float] | None = None,
    ) -> None:
        self._node_registry = node_registry
        self._launcher = launcher
        self._settings = settings or get_settings()
        # Named schedule intervals plus an optional "email" entry
        self._intervals = {**INTERVAL_SECONDS, **(poll_intervals or {})}

        self._registrations: dict[tuple[str, str], TriggerRegistration] = {}
        self._tasks: dict[tuple[str, str], asyncio.Task[None]] = {}
        self._launches: set[asyncio.Task[str]] = set()
        self._lock = asyncio.Lock()

    # --- Registration ---

    async def register(
        self,
        workflow_id: str,
        node_id: str,
        kind: TriggerKind | str,
        parameters: dict[str, Any] | None = None,
        credentials: dict[str, Any] | None = None,
        node_type: str | None = None,
    ) -> bool:
        """
        Register (or replace) the trigger for a workflow node.

        Schedule and email triggers start polling immediately; the first
        check happens one interval after registration.

        Raises:
            TriggerRegistrationError: If the kind or node type is unknown
        """
        try:
            trigger_kind = TriggerKind(kind)
        except ValueError:
            raise TriggerRegistrationError(
                f'Unknown trigger kind "{kind}"', workflow_id, node_id
            ) from None

        node_type = node_type or DEFAULT_NODE_TYPES[trigger_kind]
        desc = self._node_registry.describe(node_type)
        if desc is None or not desc.is_trigger:
            raise TriggerRegistrationError(
                f'Node type "{node_type}" is not a trigger', workflow_id, node_id
            )
        if trigger_kind is TriggerKind.SCHEDULE:
            try:
                validate_schedule(parameters or {})
            except ValueError as e:
                raise TriggerRegistrationError(str(e), workflow_id, node_id) from None

        registration = TriggerRegistration(
            workflow_id=workflow_id,
            node_id=node_id,
            kind=trigger_kind,
            node_type=node_type,
            parameters=dict(parameters or {}),
            credentials=dict(credentials) if credentials else None,
        )

        async with self._lock:
            self._registrations.pop(registration.key, None)
            previous = self._tasks.pop(registration.key, None)
            self._registrations[registration.key] = registration
            if trigger_kind.is_polling:
                self._tasks[registration.key] = asyncio.create_task(
                    self._poll_loop(registration), name=f"trigger-{registration.label}"
                )

        if previous is not None:
            await self._stop(previous)

        logger.info(
            "Registered %s trigger %s (%s)", trigger_kind.value, registration.label, node_type
        )
        return True

    async def unregister(self, workflow_id: str, node_id: str) -> bool:
        """Remove a trigger and stop its polling task. Returns False if it was not registered."""
        key = (workflow_id, node_id)
        async with self._lock:
            registration = self._registrations.pop(key, None)
            task = self._tasks.pop(key, None)

        if task is not None:
            await self._stop(task)
        if registration is None:
            return False

        logger.info("Unregistered %s trigger %s", registration.kind.value, registration.label)
        return True

    async def register_workflow_triggers(
        self,
        workflow_id: str,
        nodes: list[NodeDefinition],
        credentials: dict[str, dict[str, Any]] | None = None,
    ) -> list[str]:
        """
        Register every trigger node of a workflow.

        Args:
            workflow_id: Workflow the nodes belong to
            nodes: The workflow's node definitions
            credentials: Optional credentials keyed by node id

        Returns:
            IDs of the nodes that were registered
        """
        registered = []
        for node in nodes:
            desc = self._node_registry.describe(node.type)
            if desc is None or not desc.is_trigger:
                continue
            kind = detect_trigger_kind(node.type)
            if kind is None:
                logger.warning("Cannot tell trigger kind of node %s (%s)", node.id, node.type)
                continue
            await self.register(
                workflow_id,
                node.id,
                kind,
                node.parameters,
                credentials=(credentials or {}).get(node.id),
                node_type=node.type,
            )
            registered.append(node.id)
        return registered

    async def unregister_workflow_triggers(self, workflow_id: str) -> int:
        """Unregister every trigger of a workflow, or of all workflows with "*"."""
        async with self._lock:
            keys = [
                key
                for key, reg in self._registrations.items()
                if workflow_id == "*" or reg.workflow_id == workflow_id
            ]
            tasks = [self._tasks.pop(key) for key in keys if key in self._tasks]
            for key in keys:
                del self._registrations[key]

        for task in tasks:
            await self._stop(task)
        if keys:
            logger.info("Unregistered %d trigger(s) for workflow %s", len(keys), workflow_id)
        return len(keys)

    # --- Firing ---

    async def execute_manual(
        self,
        workflow_id: str,
        node_id: str,
        data: dict[str, Any] | None = None,
    ) -> TriggerResult:
        """Fire a manual trigger. The node does not need to be registered."""
        node_type = DEFAULT_NODE_TYPES[TriggerKind.MANUAL]
        node = self._node_registry.create(node_type)
        context = ExecutionContext(
            execution_id=new_execution_id(), workflow_id=workflow_id, mode="manual"
        )
        node_def = NodeDefinition(
            id=node_id, type=node_type, parameters={"executionData": data or {}}
        )

        try:
            result = await node.execute(context, node_def, [])
        except Exception as e:
            logger.warning("Manual trigger %s-%s failed: %s", workflow_id, node_id, e)
            return TriggerResult(triggered=False, error=str(e))

        items = result.outputs.get("main", [])
        logger.info("Manual trigger %s-%s fired", workflow_id, node_id)

        execution_id = None
        if self._launcher is not None:
            execution_id = await self._launcher(workflow_id, node_id, items, "manual", None)

        return TriggerResult(
            triggered=True,
            data=[item.json for item in items],
            execution_id=execution_id,
        )

    async def handle_webhook(self, path: str, request: WebhookRequest) -> TriggerResult | None:
        """
        Dispatch an inbound request to the first matching webhook trigger.

        Returns None when no webhook trigger matches the path.
        """
        registration = self._match_webhook(path)
        if registration is None:
            return None

        node = self._node_registry.create(registration.node_type)
        context = ExecutionContext(
            execution_id=new_execution_id(),
            workflow_id=registration.workflow_id,
            mode="webhook",
            credentials=dict(registration.credentials or {}),
        )

        try:
            result = await node.webhook(context, self._node_definition(registration), request)
        except WebhookHandlerError as e:
            logger.warning("Webhook %s rejected request: %s", registration.label, e.message)
            return TriggerResult(
                triggered=False,
                error=e.message,
                response=WebhookResponse(status_code=e.status_code, body={"message": e.message}),
            )
        except Exception as e:
            logger.exception("Webhook handler for %s failed", registration.label)
            return TriggerResult(
                triggered=False,
                error=str(e),
                response=WebhookResponse(status_code=500, body={"message": str(e)}),
            )

        logger.info("Webhook trigger %s fired for %s %s", registration.label, request.method, path)

        execution_id = None
        if self._launcher is not None:
            execution_id = await self._launcher(
                registration.workflow_id,
                registration.node_id,
                result.items,
                "webhook",
                registration.credentials,
            )

        return TriggerResult(
            triggered=True,
            data=[item.json for item in result.items],
            execution_id=execution_id,
            response=result.response if result.response_mode == "onReceived" else None,
        )

    async def poll_now(self, workflow_id: str, node_id: str) -> list[NodeData]:
        """
        Run one poll of a registered polling trigger right away.

        Raises:
            TriggerRegistrationError: If no polling trigger is registered for the node
        """
        async with self._lock:
            registration = self._registrations.get((workflow_id, node_id))

        if registration is None or not registration.kind.is_polling:
            raise TriggerRegistrationError(
                "No polling trigger registered for this node", workflow_id, node_id
            )
        return await self._tick(registration)

    # --- Introspection ---

    def active_triggers(self) -> list[TriggerRegistration]:
        return list(self._registrations.values())

    def get(self, workflow_id: str, node_id: str) -> TriggerRegistration | None:
        return self._registrations.get((workflow_id, node_id))

    def statistics(self) -> TriggerStatistics:
        """Snapshot of registrations by kind."""
        by_type: dict[str, int] = {}
        for registration in self._registrations.values():
            by_type[registration.kind.value] = by_type.get(registration.kind.value, 0) + 1
        return TriggerStatistics(
            total_triggers=len(self._registrations),
            triggers_by_type=by_type,
            polling_triggers_count=len(self._tasks),
        )

    async def cleanup(self) -> None:
        """Stop every polling task and drop every registration."""
        async with self._lock:
            tasks = list(self._tasks.values())
            self._tasks.clear()
            self._registrations.clear()

        for task in tasks:
            await self._stop(task)
        logger.info("Trigger registry cleaned up (%d polling task(s) stopped)", len(tasks))

    # --- Internals ---

    def _match_webhook(self, path: str) -> TriggerRegistration | None:
        request_path = _normalize_path(path)
        exact = self._settings.webhook_path_matching == "exact"
        for registration in self._registrations.values():
            if registration.kind is not TriggerKind.WEBHOOK:
                continue
            configured = registration.parameters.get("path")
            if not configured:
                continue
            configured = _normalize_path(str(configured))
            if exact and configured == request_path:
                return registration
            if not exact and configured in request_path:
                return registration
        return None

    def _node_definition(self, registration: TriggerRegistration) -> NodeDefinition:
        return NodeDefinition(
            id=registration.node_id,
            type=registration.node_type,
            parameters=dict(registration.parameters),
        )

    def _interval(self, registration: TriggerRegistration) -> float:
        if registration.kind is TriggerKind.EMAIL:
            return float(self._intervals.get("email", self._settings.email_poll_interval))
        return next_delay(registration.parameters, intervals=self._intervals)

    async def _poll_loop(self, registration: TriggerRegistration) -> None:
        while True:
            try:
                delay = self._interval(registration)
            except Exception:
                logger.exception(
                    "Could not compute next delay for %s, using %.0fs",
                    registration.label, DEFAULT_INTERVAL_SECONDS,
                )
                delay = DEFAULT_INTERVAL_SECONDS
            await asyncio.sleep(delay)
            try:
                await self._tick(registration)
            except Exception:
                logger.exception("Polling trigger %s failed", registration.label)

    async def _tick(self, registration: TriggerRegistration) -> list[NodeData]:
        node = self._node_registry.create(registration.node_type)
        context = ExecutionContext(
            execution_id=new_execution_id(),
            workflow_id=registration.workflow_id,
            mode=registration.kind.value,
            credentials=dict(registration.credentials or {}),
            trigger_state=registration.state,
        )
        items = await node.poll(context, self._node_definition(registration))
        if items:
            logger.info(
                "%s trigger %s fired with %d item(s)",
                registration.kind.value.capitalize(), registration.label, len(items),
            )
            self._launch(registration, items)
        return items

    def _launch(self, registration: TriggerRegistration, items: list[NodeData]) -> None:
        if self._launcher is None:
            return
        task = asyncio.create_task(
            self._launcher(
                registration.workflow_id,
                registration.node_id,
                items,
                registration.kind.value,
                registration.credentials,
            )
        )
        self._launches.add(task)
        task.add_done_callback(self._launch_done)

    def _launch_done(self, task: asyncio.Task[str]) -> None:
        self._launches.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Launching workflow failed", exc_info=task.exception())

    async def _stop(self, task: asyncio.Task[None]) -> None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Polling task %s ended with an error", task.get_name())
