"""
nodeflow - Pytest Configuration
===============================

Shared fixtures and test doubles for all tests.
"""

import os

import pytest

# Set test environment BEFORE any imports
os.environ["NODEFLOW_OPENAI_API_KEY"] = "test-key"
os.environ["NODEFLOW_ANTHROPIC_API_KEY"] = "test-key"
os.environ["NODEFLOW_EXECUTION_TIMEOUT"] = "10"

from nodeflow.core.config import Settings
from nodeflow.engine.graph_compiler import compile
from nodeflow.engine.llm_provider import CompletionResult
from nodeflow.engine.node_registry import create_default_registry
from nodeflow.engine.types import Connection, ExecutionContext, NodeDefinition
from nodeflow.engine.workflow_runner import WorkflowRunner


# =============================================================================
# Test doubles
# =============================================================================

class FakeTextCompletion:
    """Records prompts and answers with a canned reply."""

    def __init__(self, reply: str = "fake reply", fail_on: str | None = None) -> None:
        self.reply = reply
        self.fail_on = fail_on
        self.calls: list[dict] = []

    async def complete(self, *, model, system, prompt, temperature=0.7, max_tokens=None):
        self.calls.append({
            "model": model,
            "system": system,
            "prompt": prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.fail_on and self.fail_on in prompt:
            raise RuntimeError("model unavailable")
        return CompletionResult(
            text=f"{self.reply} #{len(self.calls)}",
            model=model,
            usage={"promptTokens": 3, "completionTokens": 2, "totalTokens": 5},
        )


class FakeLauncher:
    """Collects launches instead of running workflows."""

    def __init__(self) -> None:
        self.launches: list[tuple] = []

    async def __call__(self, workflow_id, node_id, items, mode, credentials=None):
        self.launches.append((workflow_id, node_id, items, mode, credentials))
        return f"exec-{len(self.launches)}"


# =============================================================================
# Helpers
# =============================================================================

def node(node_id: str, node_type: str, **parameters) -> NodeDefinition:
    return NodeDefinition(id=node_id, type=node_type, parameters=parameters)


def connect(source: str, target: str, from_port: str = "main", to_port: str = "main") -> Connection:
    return Connection(
        id=f"{source}:{from_port}->{target}:{to_port}",
        from_node_id=source,
        to_node_id=target,
        from_port_id=from_port,
        to_port_id=to_port,
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def registry():
    return create_default_registry()


@pytest.fixture
def fake_llm():
    return FakeTextCompletion()


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def test_settings():
    return Settings(execution_timeout=10.0, code_timeout=2.0, email_poll_interval=300.0)


@pytest.fixture
def context(fake_llm):
    return ExecutionContext(execution_id="exec-test", workflow_id="wf-test", llm=fake_llm)


@pytest.fixture
def run_workflow(registry, fake_llm):
    """Compile and run a node/connection list, returning the RunResult."""

    async def _run(nodes, connections=(), initial_input=None, context=None, timeout=None):
        plan = compile(list(nodes), list(connections), registry)
        ctx = context or ExecutionContext(execution_id="exec-test", workflow_id="wf-test", llm=fake_llm)
        return await WorkflowRunner().run(plan, registry, initial_input, context=ctx, timeout=timeout)

    return _run
