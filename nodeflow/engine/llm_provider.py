"""Text-completion capability for agent nodes, using the openai and anthropic SDKs.

Public API:
    call_llm(model, messages, temperature, max_tokens) -> CompletionResult
    SdkTextCompletion().complete(...)

Routing:
  - claude-*              -> anthropic SDK
  - gpt-* / o1-* / other  -> openai SDK
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class CompletionResult:
    """Standardized response from a completion call."""

    text: str
    model: str
    usage: dict[str, Any] = field(default_factory=dict)


class TextCompletion(Protocol):
    """Anything agent nodes can send a system/user prompt pair to."""

    async def complete(
        self,
        *,
        model: str,
        system: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> CompletionResult: ...


# ---------------------------------------------------------------------------
# Config helper
# ---------------------------------------------------------------------------


def _get_env(key: str) -> str | None:
    """Read a config value, checking the NODEFLOW_ prefix first, then raw, then settings."""
    val = os.environ.get(f"NODEFLOW_{key}") or os.environ.get(key)
    if val:
        return val
    from ..core.config import get_settings

    return getattr(get_settings(), key.lower(), None)


# ---------------------------------------------------------------------------
# Lazy client singletons
# ---------------------------------------------------------------------------

_clients: dict[str, Any] = {}


def _get_openai_client() -> Any:
    if "openai" not in _clients:
        from openai import AsyncOpenAI

        _clients["openai"] = AsyncOpenAI(api_key=_get_env("OPENAI_API_KEY"))
    return _clients["openai"]


def _get_anthropic_client() -> Any:
    if "anthropic" not in _clients:
        from anthropic import AsyncAnthropic

        _clients["anthropic"] = AsyncAnthropic(api_key=_get_env("ANTHROPIC_API_KEY"))
    return _clients["anthropic"]


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


async def _call_openai(
    model: str,
    messages: list[dict[str, str]],
    temperature: float,
    max_tokens: int | None,
) -> CompletionResult:
    client = _get_openai_client()
    completion_kwargs: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
    }
    if max_tokens:
        completion_kwargs["max_tokens"] = max_tokens

    completion = await client.chat.completions.create(**completion_kwargs)

    choice = completion.choices[0] if completion.choices else None
    usage: dict[str, Any] = {}
    if completion.usage:
        usage = {
            "promptTokens": completion.usage.prompt_tokens,
            "completionTokens": completion.usage.completion_tokens,
            "totalTokens": completion.usage.total_tokens,
        }
    return CompletionResult(
        text=(choice.message.content or "") if choice else "",
        model=completion.model or model,
        usage=usage,
    )


async def _call_anthropic(
    model: str,
    messages: list[dict[str, str]],
    temperature: float,
    max_tokens: int | None,
) -> CompletionResult:
    client = _get_anthropic_client()
    system_prompt = "\n".join(m["content"] for m in messages if m["role"] == "system")
    api_messages = [m for m in messages if m["role"] != "system"]

    call_kwargs: dict[str, Any] = {
        "model": model,
        "messages": api_messages,
        "max_tokens": max_tokens or 4096,
        "temperature": temperature,
    }
    if system_prompt:
        call_kwargs["system"] = system_prompt

    response = await client.messages.create(**call_kwargs)

    text = "\n".join(block.text for block in response.content if block.type == "text")
    usage = {
        "promptTokens": response.usage.input_tokens,
        "completionTokens": response.usage.output_tokens,
        "totalTokens": response.usage.input_tokens + response.usage.output_tokens,
    }
    return CompletionResult(text=text, model=response.model or model, usage=usage)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def call_llm(
    model: str,
    messages: list[dict[str, str]],
    temperature: float = 0.7,
    max_tokens: int | None = None,
) -> CompletionResult:
    """Call an LLM with OpenAI-format messages.

    Args:
        model: Model identifier (e.g. "gpt-4", "claude-3-5-sonnet-latest").
        messages: Conversation as OpenAI-format dicts.
        temperature: Sampling temperature.
        max_tokens: Upper bound on generated tokens.
    """
    if model.startswith("claude-"):
        return await _call_anthropic(model, messages, temperature, max_tokens)

    # Default: OpenAI (gpt-*, o1-*, o3-*, etc.)
    return await _call_openai(model, messages, temperature, max_tokens)


class SdkTextCompletion:
    """TextCompletion backed by the provider SDKs."""

    async def complete(
        self,
        *,
        model: str,
        system: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return await call_llm(model, messages, temperature, max_tokens)
