"""Schedule trigger node - fires on a fixed interval or cron expression."""

from __future__ import annotations

from datetime import datetime
from typing import Any, TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

from ..base import (
    BaseNode,
    NodeTypeDescription,
    NodeOutputDefinition,
    NodeProperty,
    NodePropertyOption,
)

if TYPE_CHECKING:
    from ...engine.types import ExecutionContext, NodeData, NodeDefinition, NodeExecutionResult

INTERVAL_SECONDS: dict[str, float] = {
    "everyMinute": 60,
    "every5Minutes": 300,
    "every10Minutes": 600,
    "every30Minutes": 1800,
    "everyHour": 3600,
    "everyDay": 86400,
}
DEFAULT_INTERVAL_SECONDS = 60.0


def _zone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def validate_schedule(parameters: dict[str, Any]) -> None:
    """Raise ValueError when a custom schedule has an unusable cron expression."""
    if parameters.get("triggerInterval") != "custom":
        return
    expression = parameters.get("cronExpression") or "* * * * *"
    if not croniter.is_valid(expression):
        raise ValueError(f'Invalid cron expression "{expression}"')


def next_delay(
    parameters: dict[str, Any],
    now: datetime | None = None,
    intervals: dict[str, float] | None = None,
) -> float:
    """
    Seconds until the next firing of a schedule trigger.

    Named intervals come from the interval table; "custom" evaluates the cron
    expression in the configured timezone. Unknown intervals fall back to one
    minute.
    """
    table = intervals if intervals is not None else INTERVAL_SECONDS
    interval = parameters.get("triggerInterval", "everyMinute")

    if interval == "custom":
        expression = parameters.get("cronExpression") or "* * * * *"
        zone = _zone(parameters.get("timezone"))
        current = now.astimezone(zone) if now else datetime.now(zone)
        upcoming = croniter(expression, current).get_next(datetime)
        return max((upcoming - current).total_seconds(), 0.0)

    return float(table.get(interval, table.get("everyMinute", DEFAULT_INTERVAL_SECONDS)))


class ScheduleTriggerNode(BaseNode):
    """Schedule trigger node - emits one item per tick."""

    node_description = NodeTypeDescription(
        name="ScheduleTrigger",
        display_name="Schedule Trigger",
        description="Trigger workflow on a schedule",
        category="triggers",
        icon="fa:clock",
        group=("trigger", "schedule"),
        inputs=(),  # No inputs - this is a trigger
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Trigger Interval",
                name="triggerInterval",
                type="options",
                default="everyMinute",
                options=(
                    NodePropertyOption(name="Every Minute", value="everyMinute"),
                    NodePropertyOption(name="Every 5 Minutes", value="every5Minutes"),
                    NodePropertyOption(name="Every 10 Minutes", value="every10Minutes"),
                    NodePropertyOption(name="Every 30 Minutes", value="every30Minutes"),
                    NodePropertyOption(name="Every Hour", value="everyHour"),
                    NodePropertyOption(name="Every Day", value="everyDay"),
                    NodePropertyOption(
                        name="Custom (Cron)",
                        value="custom",
                        description="Use a cron expression",
                    ),
                ),
            ),
            NodeProperty(
                display_name="Cron Expression",
                name="cronExpression",
                type="string",
                default="0 9 * * 1-5",
                placeholder="0 9 * * 1-5",
                description="Standard cron expression (minute hour day month weekday)",
                display_options={"show": {"triggerInterval": ["custom"]}},
            ),
            NodeProperty(
                display_name="Timezone",
                name="timezone",
                type="string",
                default="UTC",
                placeholder="Europe/Berlin",
            ),
        ),
        is_trigger=True,
        supports_polling=True,
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        if input_data:
            return self.output(input_data)
        return self.output(await self.poll(context, node_definition))

    async def poll(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
    ) -> list[NodeData]:
        from ...engine.types import NodeData

        interval = self.get_parameter(node_definition, "triggerInterval", "everyMinute")
        timezone_name = self.get_parameter(node_definition, "timezone", "UTC")

        item: dict[str, Any] = {
            "timestamp": datetime.now(_zone(timezone_name)).isoformat(),
            "triggeredBy": "schedule",
            "interval": interval,
            "timezone": timezone_name,
        }
        if interval == "custom":
            item["cronExpression"] = self.get_parameter(node_definition, "cronExpression", "")
        return [NodeData(json=item)]
