"""
nodeflow - Trigger Node Tests
=============================

Tests for the manual, schedule, webhook and email trigger nodes.
"""

import base64
from datetime import datetime, timezone

import pytest

from conftest import node
from nodeflow.core.exceptions import PollError, WebhookHandlerError
from nodeflow.engine.types import ExecutionContext, NodeData, WebhookRequest
from nodeflow.nodes import EmailTriggerNode, ManualTriggerNode, ScheduleTriggerNode, WebhookNode
from nodeflow.nodes.triggers.schedule_trigger import next_delay


# =============================================================================
# Manual
# =============================================================================

class TestManualTrigger:

    @pytest.mark.asyncio
    async def test_emits_payload_item(self, context):
        result = await ManualTriggerNode().execute(context, node("t", "ManualTrigger", executionData={"x": 1}), [])
        item = result.outputs["main"][0].json
        assert item["triggeredBy"] == "manual"
        assert item["data"] == {"x": 1}
        assert "timestamp" in item
        assert "executionId" not in item

    @pytest.mark.asyncio
    async def test_passes_registry_items_through(self, context):
        items = [NodeData(json={"already": "built"})]
        result = await ManualTriggerNode().execute(context, node("t", "ManualTrigger"), items)
        assert result.outputs["main"] == items


# =============================================================================
# Schedule
# =============================================================================

class TestNextDelay:

    @pytest.mark.parametrize(
        ("interval", "seconds"),
        [("everyMinute", 60), ("every5Minutes", 300), ("everyHour", 3600), ("everyDay", 86400)],
    )
    def test_interval_table(self, interval, seconds):
        assert next_delay({"triggerInterval": interval}) == seconds

    def test_unknown_interval_falls_back_to_one_minute(self):
        assert next_delay({"triggerInterval": "fortnightly"}) == 60

    def test_interval_overrides(self):
        assert next_delay({"triggerInterval": "everyMinute"}, intervals={"everyMinute": 0.5}) == 0.5

    def test_custom_cron(self):
        now = datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)
        delay = next_delay(
            {"triggerInterval": "custom", "cronExpression": "0 9 * * *", "timezone": "UTC"},
            now=now,
        )
        assert delay == 30 * 60

    def test_bad_timezone_uses_utc(self):
        now = datetime(2024, 1, 1, 8, 59, tzinfo=timezone.utc)
        delay = next_delay(
            {"triggerInterval": "custom", "cronExpression": "0 9 * * *", "timezone": "Nowhere/City"},
            now=now,
        )
        assert delay == 60


class TestScheduleTrigger:

    @pytest.mark.asyncio
    async def test_poll_item(self, context):
        items = await ScheduleTriggerNode().poll(context, node("s", "ScheduleTrigger", triggerInterval="everyHour"))
        assert len(items) == 1
        assert items[0].json["triggeredBy"] == "schedule"
        assert items[0].json["interval"] == "everyHour"
        assert "cronExpression" not in items[0].json

    @pytest.mark.asyncio
    async def test_poll_item_for_cron(self, context):
        definition = node("s", "ScheduleTrigger", triggerInterval="custom", cronExpression="*/5 * * * *")
        items = await ScheduleTriggerNode().poll(context, definition)
        assert items[0].json["cronExpression"] == "*/5 * * * *"


# =============================================================================
# Webhook
# =============================================================================

def _request(method="POST", headers=None, body=None):
    return WebhookRequest(
        method=method,
        path="/hooks/demo",
        headers=headers or {},
        query={"page": "1"},
        body=body,
        base_url="http://testserver/webhook",
    )


class TestWebhookNode:

    @pytest.mark.asyncio
    async def test_on_received(self, context):
        definition = node("w", "Webhook", path="/hooks/demo", httpMethod="POST")
        result = await WebhookNode().webhook(context, definition, _request(body={"a": 1}))

        assert result.response_mode == "onReceived"
        assert result.response.status_code == 200
        assert result.response.body == {"message": "Workflow was started"}
        item = result.items[0].json
        assert item["body"] == {"a": 1}
        assert item["query"] == {"page": "1"}
        assert item["webhookUrl"] == "http://testserver/webhook/hooks/demo"

    @pytest.mark.asyncio
    async def test_custom_response_data(self, context):
        definition = node(
            "w", "Webhook",
            path="/hooks/demo",
            responseCode=201,
            responseData="{{ $json.body.name }}",
        )
        result = await WebhookNode().webhook(context, definition, _request(body={"name": "ada"}))
        assert result.response.status_code == 201
        assert result.response.body == "ada"

    @pytest.mark.asyncio
    async def test_no_data(self, context):
        definition = node("w", "Webhook", path="/hooks/demo", responseData="noData")
        result = await WebhookNode().webhook(context, definition, _request())
        assert result.response.body is None

    @pytest.mark.asyncio
    async def test_last_node_has_no_response(self, context):
        definition = node("w", "Webhook", path="/hooks/demo", responseMode="lastNode")
        result = await WebhookNode().webhook(context, definition, _request())
        assert result.response_mode == "lastNode"
        assert result.response is None

    @pytest.mark.asyncio
    async def test_wrong_method(self, context):
        definition = node("w", "Webhook", path="/hooks/demo", httpMethod="GET")
        with pytest.raises(WebhookHandlerError) as exc:
            await WebhookNode().webhook(context, definition, _request(method="POST"))
        assert exc.value.status_code == 405

    @pytest.mark.asyncio
    async def test_basic_auth(self):
        ctx = ExecutionContext(execution_id="e", credentials={"user": "ada", "password": "secret"})
        definition = node("w", "Webhook", path="/hooks/demo", authentication="basicAuth")
        token = base64.b64encode(b"ada:secret").decode()

        result = await WebhookNode().webhook(ctx, definition, _request(headers={"Authorization": f"Basic {token}"}))
        assert result.items

        with pytest.raises(WebhookHandlerError) as missing:
            await WebhookNode().webhook(ctx, definition, _request())
        assert missing.value.status_code == 401

        wrong = base64.b64encode(b"ada:nope").decode()
        with pytest.raises(WebhookHandlerError) as denied:
            await WebhookNode().webhook(ctx, definition, _request(headers={"Authorization": f"Basic {wrong}"}))
        assert denied.value.status_code == 403

    @pytest.mark.asyncio
    async def test_header_auth(self):
        ctx = ExecutionContext(execution_id="e", credentials={"name": "X-Api-Key", "value": "k1"})
        definition = node("w", "Webhook", path="/hooks/demo", authentication="headerAuth")

        result = await WebhookNode().webhook(ctx, definition, _request(headers={"x-api-key": "k1"}))
        assert result.items

        with pytest.raises(WebhookHandlerError) as denied:
            await WebhookNode().webhook(ctx, definition, _request(headers={"X-Api-Key": "k2"}))
        assert denied.value.status_code == 403

    @pytest.mark.asyncio
    async def test_auth_without_credentials(self, context):
        definition = node("w", "Webhook", path="/hooks/demo", authentication="headerAuth")
        with pytest.raises(WebhookHandlerError) as exc:
            await WebhookNode().webhook(context, definition, _request())
        assert exc.value.status_code == 500


# =============================================================================
# Email
# =============================================================================

RAW_MESSAGE = (
    b"From: Ada <ada@example.com>\r\n"
    b"To: ops@example.com\r\n"
    b"Subject: Invoice\r\n"
    b"Message-ID: <1@example.com>\r\n"
    b"Date: Mon, 01 Jan 2024 09:00:00 +0000\r\n"
    b"Content-Type: text/plain; charset=utf-8\r\n"
    b"\r\n"
    b"Please pay.\r\n"
)


class FakeIMAP:
    """Minimal stand-in for imaplib.IMAP4_SSL."""

    instances: list["FakeIMAP"] = []

    def __init__(self, host, port):
        self.host = host
        self.port = port
        self.commands: list[tuple] = []
        self.expunged = False
        self.logged_out = False
        FakeIMAP.instances.append(self)

    def login(self, user, password):
        self.commands.append(("login", user))

    def select(self, mailbox):
        return ("OK", [b"1"])

    def uid(self, command, *args):
        self.commands.append((command, *args))
        if command == "search":
            return ("OK", [b"7"])
        if command == "fetch":
            return ("OK", [(b"7 (UID 7 BODY[] {100}", RAW_MESSAGE), b")"])
        return ("OK", [])

    def expunge(self):
        self.expunged = True

    def logout(self):
        self.logged_out = True


class TestEmailTrigger:

    @pytest.fixture(autouse=True)
    def fake_imap(self, monkeypatch):
        FakeIMAP.instances = []
        monkeypatch.setattr("nodeflow.nodes.triggers.email_trigger.imaplib.IMAP4_SSL", FakeIMAP)

    def _context(self):
        return ExecutionContext(
            execution_id="e",
            credentials={"host": "imap.example.com", "user": "ops", "password": "pw"},
        )

    @pytest.mark.asyncio
    async def test_polls_unseen_messages(self):
        items = await EmailTriggerNode().poll(self._context(), node("m", "EmailTrigger"))

        assert len(items) == 1
        item = items[0].json
        assert item["subject"] == "Invoice"
        assert item["from"] == "Ada <ada@example.com>"
        assert item["body"].strip() == "Please pay."
        assert item["uid"] == "7"

        imap = FakeIMAP.instances[0]
        assert imap.port == 993
        assert ("store", "7", "+FLAGS", "(\\Seen)") in imap.commands
        assert imap.logged_out

    @pytest.mark.asyncio
    async def test_delete_action_expunges(self):
        await EmailTriggerNode().poll(self._context(), node("m", "EmailTrigger", postProcessAction="delete"))
        imap = FakeIMAP.instances[0]
        assert ("store", "7", "+FLAGS", "(\\Deleted)") in imap.commands
        assert imap.expunged

    @pytest.mark.asyncio
    async def test_nothing_action_does_not_reemit(self):
        context = self._context()
        definition = node("m", "EmailTrigger", postProcessAction="nothing")

        first = await EmailTriggerNode().poll(context, definition)
        second = await EmailTriggerNode().poll(context, definition)

        assert [item.json["uid"] for item in first] == ["7"]
        assert second == []
        assert context.trigger_state == {"lastUid": 7}
        assert not any(command[0] == "store" for imap in FakeIMAP.instances for command in imap.commands)

    @pytest.mark.asyncio
    async def test_missing_credentials(self, context):
        with pytest.raises(PollError, match="IMAP credentials are required"):
            await EmailTriggerNode().poll(context, node("m", "EmailTrigger"))
