"""
nodeflow - Node Registry Tests
==============================
"""

import pytest

from nodeflow.core.exceptions import UnknownNodeTypeError
from nodeflow.engine.node_registry import NodeRegistry, create_default_registry
from nodeflow.nodes import IfNode, ManualTriggerNode
from nodeflow.nodes.base import BaseNode


BUILT_IN_TYPES = {
    "ManualTrigger",
    "Webhook",
    "ScheduleTrigger",
    "EmailTrigger",
    "HttpRequest",
    "Set",
    "If",
    "Code",
    "Merge",
    "OpenAIAgent",
    "MarketingAgent",
    "SalesAgent",
    "AgentChain",
}


class TestNodeRegistry:
    """Tests for registering and describing node types."""

    def test_default_registry_has_all_built_in_types(self, registry):
        assert set(registry.list()) == BUILT_IN_TYPES

    def test_descriptions_use_sequences_for_ports(self, registry):
        for node_type in registry.list():
            desc = registry.describe(node_type)
            assert isinstance(desc.inputs, tuple)
            assert isinstance(desc.outputs, tuple)
            assert desc.outputs, f"{node_type} has no output port"

    def test_triggers_have_no_inputs(self, registry):
        for node_type in registry.list_by_category("triggers"):
            desc = registry.describe(node_type)
            assert desc.is_trigger
            assert desc.inputs == ()

    def test_if_declares_true_and_false_outputs(self, registry):
        assert registry.describe("If").output_names == ["true", "false"]

    def test_merge_declares_two_required_inputs(self, registry):
        desc = registry.describe("Merge")
        assert desc.input_names == ["input1", "input2"]
        assert all(i.required for i in desc.inputs)

    def test_polling_and_webhook_flags(self, registry):
        assert registry.describe("ScheduleTrigger").supports_polling
        assert registry.describe("EmailTrigger").supports_polling
        assert registry.describe("Webhook").supports_webhook
        assert not registry.describe("ManualTrigger").supports_polling

    def test_describe_unknown_type_returns_none(self, registry):
        assert registry.describe("Nope") is None
        assert not registry.has("Nope")

    def test_create_unknown_type_raises(self, registry):
        with pytest.raises(UnknownNodeTypeError) as exc_info:
            registry.create("Nope")
        assert exc_info.value.node_type == "Nope"

    def test_create_returns_fresh_instances(self, registry):
        first = registry.create("If")
        second = registry.create("If")
        assert isinstance(first, IfNode)
        assert isinstance(first, BaseNode)
        assert first is not second

    def test_register_is_idempotent(self):
        registry = NodeRegistry()
        registry.register(ManualTriggerNode)
        registry.register(ManualTriggerNode)
        assert registry.list() == ["ManualTrigger"]

    def test_search_is_case_insensitive(self, registry):
        assert "HttpRequest" in registry.search("http")
        assert "Merge" in registry.search("MERGE")

    def test_list_by_category(self, registry):
        assert set(registry.list_by_category("ai")) == {
            "OpenAIAgent", "MarketingAgent", "SalesAgent", "AgentChain",
        }
        assert set(registry.list_by_category("core")) == {
            "HttpRequest", "Set", "If", "Code", "Merge",
        }


class TestNodeTypeInfo:
    """Tests for the API-facing node type info."""

    def test_info_is_camel_case(self, registry):
        info = registry.get_node_type_info("Webhook")
        assert info["type"] == "Webhook"
        assert info["displayName"] == "Webhook"
        assert info["isTrigger"] is True
        assert info["supportsWebhook"] is True

    def test_properties_include_options(self, registry):
        info = registry.get_node_type_info("ScheduleTrigger")
        interval = next(p for p in info["properties"] if p["name"] == "triggerInterval")
        values = [o["value"] for o in interval["options"]]
        assert "everyMinute" in values
        assert "custom" in values

    def test_unknown_type_info_is_none(self, registry):
        assert registry.get_node_type_info("Nope") is None

    def test_list_info_covers_every_type(self):
        registry = create_default_registry()
        assert len(registry.list_node_type_info()) == len(registry.list())
