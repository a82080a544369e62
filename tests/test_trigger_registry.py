"""
nodeflow - Trigger Registry Tests
=================================

Tests for trigger registration, webhook dispatch and polling tasks.
"""

import asyncio

import pytest

from conftest import node
from nodeflow.core.config import Settings
from nodeflow.core.exceptions import TriggerRegistrationError
from nodeflow.engine.types import NodeData, TriggerKind, WebhookRequest
from nodeflow.services.trigger_registry import TriggerRegistry, detect_trigger_kind

FAST = {"everyMinute": 0.01, "email": 0.01}


async def wait_until(predicate, timeout=2.0):
    """Yield to the loop until predicate() holds."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


@pytest.fixture
def trigger_registry(registry, launcher, test_settings):
    return TriggerRegistry(registry, launcher=launcher, settings=test_settings, poll_intervals=FAST)


def _request(method="POST", body=None):
    return WebhookRequest(method=method, path="", body=body)


class TestDetectTriggerKind:

    @pytest.mark.parametrize(
        ("node_type", "kind"),
        [
            ("ManualTrigger", TriggerKind.MANUAL),
            ("Webhook", TriggerKind.WEBHOOK),
            ("ScheduleTrigger", TriggerKind.SCHEDULE),
            ("EmailTrigger", TriggerKind.EMAIL),
            ("Set", None),
        ],
    )
    def test_detect(self, node_type, kind):
        assert detect_trigger_kind(node_type) is kind


class TestRegistration:

    @pytest.mark.asyncio
    async def test_register_webhook(self, trigger_registry):
        assert await trigger_registry.register("wf1", "n1", "webhook", {"path": "/hooks/demo"})
        stats = trigger_registry.statistics()
        assert stats.total_triggers == 1
        assert stats.triggers_by_type == {"webhook": 1}
        assert stats.polling_triggers_count == 0

    @pytest.mark.asyncio
    async def test_unknown_kind(self, trigger_registry):
        with pytest.raises(TriggerRegistrationError):
            await trigger_registry.register("wf1", "n1", "carrierPigeon")

    @pytest.mark.asyncio
    async def test_non_trigger_node_type(self, trigger_registry):
        with pytest.raises(TriggerRegistrationError):
            await trigger_registry.register("wf1", "n1", "manual", node_type="Set")

    @pytest.mark.asyncio
    async def test_schedule_starts_and_stops_polling(self, trigger_registry):
        await trigger_registry.register("wf1", "n1", "schedule", {"triggerInterval": "everyHour"})
        assert trigger_registry.statistics().polling_triggers_count == 1

        assert await trigger_registry.unregister("wf1", "n1")
        assert trigger_registry.statistics().polling_triggers_count == 0
        assert not await trigger_registry.unregister("wf1", "n1")

    @pytest.mark.asyncio
    async def test_reregister_replaces(self, trigger_registry):
        await trigger_registry.register("wf1", "n1", "schedule", {"triggerInterval": "everyHour"})
        await trigger_registry.register("wf1", "n1", "schedule", {"triggerInterval": "everyDay"})

        stats = trigger_registry.statistics()
        assert stats.total_triggers == 1
        assert stats.polling_triggers_count == 1
        assert trigger_registry.get("wf1", "n1").parameters == {"triggerInterval": "everyDay"}
        await trigger_registry.cleanup()

    @pytest.mark.asyncio
    async def test_ids_containing_dashes_stay_distinct(self, trigger_registry):
        await trigger_registry.register("a-b", "c", "webhook", {"path": "/one"})
        await trigger_registry.register("a", "b-c", "webhook", {"path": "/two"})

        assert trigger_registry.statistics().total_triggers == 2
        assert trigger_registry.get("a-b", "c").parameters == {"path": "/one"}
        assert trigger_registry.get("a", "b-c").parameters == {"path": "/two"}

        assert await trigger_registry.unregister("a", "b-c")
        assert trigger_registry.get("a-b", "c") is not None

    @pytest.mark.asyncio
    async def test_invalid_cron_is_rejected(self, trigger_registry):
        with pytest.raises(TriggerRegistrationError, match="cron"):
            await trigger_registry.register(
                "wf1", "n1", "schedule", {"triggerInterval": "custom", "cronExpression": "not a cron"}
            )

        stats = trigger_registry.statistics()
        assert stats.total_triggers == 0
        assert stats.polling_triggers_count == 0
        await trigger_registry.cleanup()

    @pytest.mark.asyncio
    async def test_register_workflow_triggers(self, trigger_registry):
        nodes = [
            node("hook", "Webhook", path="/in"),
            node("set", "Set"),
            node("cron", "ScheduleTrigger", triggerInterval="everyHour"),
        ]
        registered = await trigger_registry.register_workflow_triggers(
            "wf1", nodes, {"hook": {"name": "X-Key", "value": "k"}}
        )

        assert registered == ["hook", "cron"]
        assert trigger_registry.get("wf1", "hook").credentials == {"name": "X-Key", "value": "k"}
        assert await trigger_registry.unregister_workflow_triggers("wf1") == 2
        assert trigger_registry.active_triggers() == []

    @pytest.mark.asyncio
    async def test_unregister_all_workflows(self, trigger_registry):
        await trigger_registry.register("wf1", "a", "manual")
        await trigger_registry.register("wf2", "b", "webhook", {"path": "/b"})
        assert await trigger_registry.unregister_workflow_triggers("*") == 2

    @pytest.mark.asyncio
    async def test_cleanup(self, trigger_registry):
        await trigger_registry.register("wf1", "a", "schedule")
        await trigger_registry.register("wf1", "b", "email")
        await trigger_registry.cleanup()

        stats = trigger_registry.statistics()
        assert stats.total_triggers == 0
        assert stats.polling_triggers_count == 0


class TestManual:

    @pytest.mark.asyncio
    async def test_execute_manual(self, trigger_registry, launcher):
        result = await trigger_registry.execute_manual("wf1", "n1", {"x": 1})

        assert result.triggered
        assert result.data[0]["data"] == {"x": 1}
        assert result.execution_id == "exec-1"
        workflow_id, node_id, items, mode, _ = launcher.launches[0]
        assert (workflow_id, node_id, mode) == ("wf1", "n1", "manual")
        assert items[0].json["triggeredBy"] == "manual"

    @pytest.mark.asyncio
    async def test_execute_manual_without_launcher(self, registry, test_settings):
        result = await TriggerRegistry(registry, settings=test_settings).execute_manual("wf1", "n1")
        assert result.triggered
        assert result.execution_id is None
        assert result.data[0]["data"] == {}


class TestWebhooks:

    @pytest.mark.asyncio
    async def test_matches_registered_path(self, trigger_registry, launcher):
        await trigger_registry.register("wf1", "n1", "webhook", {"path": "/hooks/demo"})

        result = await trigger_registry.handle_webhook("/hooks/demo", _request(body={"a": 1}))

        assert result.triggered
        assert result.response.status_code == 200
        assert result.data[0]["body"] == {"a": 1}
        assert launcher.launches[0][3] == "webhook"

    @pytest.mark.asyncio
    async def test_unknown_path(self, trigger_registry):
        await trigger_registry.register("wf1", "n1", "webhook", {"path": "/hooks/demo"})
        assert await trigger_registry.handle_webhook("/hooks/unknown", _request()) is None

    @pytest.mark.asyncio
    async def test_substring_matching_by_default(self, trigger_registry):
        await trigger_registry.register("wf1", "n1", "webhook", {"path": "demo"})
        assert await trigger_registry.handle_webhook("hooks/demo/extra", _request()) is not None

    @pytest.mark.asyncio
    async def test_exact_matching(self, registry, launcher):
        trigger_registry = TriggerRegistry(
            registry, launcher=launcher, settings=Settings(webhook_path_matching="exact")
        )
        await trigger_registry.register("wf1", "n1", "webhook", {"path": "demo"})

        assert await trigger_registry.handle_webhook("/hooks/demo", _request()) is None
        assert await trigger_registry.handle_webhook("/demo/", _request()) is not None

    @pytest.mark.asyncio
    async def test_rejected_request(self, trigger_registry, launcher):
        await trigger_registry.register("wf1", "n1", "webhook", {"path": "/hooks/demo", "httpMethod": "GET"})

        result = await trigger_registry.handle_webhook("/hooks/demo", _request(method="POST"))

        assert not result.triggered
        assert result.response.status_code == 405
        assert launcher.launches == []

    @pytest.mark.asyncio
    async def test_handler_crash_returns_server_error(self, trigger_registry, launcher, monkeypatch):
        async def crashing_webhook(self, context, node_definition, request):
            raise RuntimeError("handler crashed")

        monkeypatch.setattr("nodeflow.nodes.triggers.webhook.WebhookNode.webhook", crashing_webhook)
        await trigger_registry.register("wf1", "n1", "webhook", {"path": "/hooks/demo"})

        result = await trigger_registry.handle_webhook("/hooks/demo", _request())

        assert not result.triggered
        assert result.error == "handler crashed"
        assert result.response.status_code == 500
        assert launcher.launches == []

    @pytest.mark.asyncio
    async def test_last_node_mode_omits_response(self, trigger_registry):
        await trigger_registry.register("wf1", "n1", "webhook", {"path": "/hooks/demo", "responseMode": "lastNode"})
        result = await trigger_registry.handle_webhook("/hooks/demo", _request())
        assert result.triggered
        assert result.response is None
        assert result.execution_id == "exec-1"


class TestPolling:

    @pytest.mark.asyncio
    async def test_schedule_launches_on_tick(self, trigger_registry, launcher):
        await trigger_registry.register("wf1", "n1", "schedule", {"triggerInterval": "everyMinute"})
        await wait_until(lambda: launcher.launches)
        await trigger_registry.cleanup()

        workflow_id, node_id, items, mode, _ = launcher.launches[0]
        assert (workflow_id, node_id, mode) == ("wf1", "n1", "schedule")
        assert items[0].json["triggeredBy"] == "schedule"

    @pytest.mark.asyncio
    async def test_poll_failure_keeps_polling(self, trigger_registry, launcher, monkeypatch):
        calls = []

        async def flaky_poll(self, context, node_definition):
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("mailbox offline")
            return [NodeData(json={"n": len(calls)})]

        monkeypatch.setattr("nodeflow.nodes.triggers.schedule_trigger.ScheduleTriggerNode.poll", flaky_poll)

        await trigger_registry.register("wf1", "n1", "schedule", {"triggerInterval": "everyMinute"})
        await wait_until(lambda: launcher.launches)
        await trigger_registry.cleanup()

        assert len(calls) >= 2
        assert launcher.launches[0][2][0].json == {"n": 2}

    @pytest.mark.asyncio
    async def test_empty_poll_does_not_launch(self, trigger_registry, launcher, monkeypatch):
        async def empty_poll(self, context, node_definition):
            return []

        monkeypatch.setattr("nodeflow.nodes.triggers.schedule_trigger.ScheduleTriggerNode.poll", empty_poll)
        await trigger_registry.register("wf1", "n1", "schedule")
        assert await trigger_registry.poll_now("wf1", "n1") == []
        await trigger_registry.cleanup()
        assert launcher.launches == []

    @pytest.mark.asyncio
    async def test_poll_now_requires_polling_trigger(self, trigger_registry):
        await trigger_registry.register("wf1", "n1", "manual")
        with pytest.raises(TriggerRegistrationError):
            await trigger_registry.poll_now("wf1", "n1")

    @pytest.mark.asyncio
    async def test_delay_failure_falls_back_to_default(self, trigger_registry, launcher, monkeypatch):
        def broken_delay(parameters, now=None, intervals=None):
            raise ValueError("bad schedule")

        monkeypatch.setattr("nodeflow.services.trigger_registry.next_delay", broken_delay)
        monkeypatch.setattr("nodeflow.services.trigger_registry.DEFAULT_INTERVAL_SECONDS", 0.01)

        await trigger_registry.register("wf1", "n1", "schedule", {"triggerInterval": "everyMinute"})
        await wait_until(lambda: launcher.launches)
        await trigger_registry.cleanup()

        assert trigger_registry.statistics().polling_triggers_count == 0

    @pytest.mark.asyncio
    async def test_stopping_a_failed_task_does_not_raise(self, trigger_registry):
        async def fail():
            raise RuntimeError("boom")

        task = asyncio.create_task(fail())
        await asyncio.wait([task])

        await trigger_registry._stop(task)
        assert task.done()

    @pytest.mark.asyncio
    async def test_state_persists_between_polls(self, trigger_registry, monkeypatch):
        async def counting_poll(self, context, node_definition):
            context.trigger_state["count"] = context.trigger_state.get("count", 0) + 1
            return []

        monkeypatch.setattr("nodeflow.nodes.triggers.schedule_trigger.ScheduleTriggerNode.poll", counting_poll)
        await trigger_registry.register("wf1", "n1", "schedule", {"triggerInterval": "everyHour"})

        await trigger_registry.poll_now("wf1", "n1")
        await trigger_registry.poll_now("wf1", "n1")
        assert trigger_registry.get("wf1", "n1").state == {"count": 2}
        await trigger_registry.cleanup()
