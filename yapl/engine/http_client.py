from __future__ import annotations
"""Thin providers for OpenAI-compatible chat completion APIs.

Each provider maps yapl messages, tools and output formats onto a chat
completions request and maps the reply back into a single assistant message
plus its :class:`~yapl.core.types.Cost`.

Keeping these wrappers tiny allows painless addition of new back-ends.
"""

import json
import os
import time
from typing import Any, Dict, List, Optional, Tuple

import httpx
import openai

from yapl.core.types import Cost, Message, OutputFormat, ToolCall, ToolCallFunction
from yapl.engine.provider import Provider, ProviderRequest

__all__ = [
    "OpenAIProvider",
    "OpenRouterProvider",
    "to_openai_message",
    "to_response_format",
]

DEFAULT_TIMEOUT = 120.0


def to_openai_message(message: Message) -> Dict[str, Any]:
    msg: Dict[str, Any] = {"role": message.role, "content": message.content}
    if message.tool_calls:
        msg["tool_calls"] = [
            {
                "id": c.id,
                "type": "function",
                "function": {"name": c.function.name, "arguments": c.function.arguments},
            }
            for c in message.tool_calls
        ]
    if message.tool_call_id:
        msg["tool_call_id"] = message.tool_call_id
    return msg


def to_response_format(fmt: OutputFormat | None) -> Optional[Dict[str, Any]]:  # noqa: D401
    """``json: true`` → JSON mode, ``json: "<schema>"`` → strict JSON schema."""
    if fmt is None or fmt.json_ is None or fmt.json_ is False:
        return None
    if isinstance(fmt.json_, str):
        return {
            "type": "json_schema",
            "json_schema": {"name": "response", "strict": True, "schema": json.loads(fmt.json_)},
        }
    return {"type": "json_object"}


class OpenAIProvider(Provider):
    """OpenAI chat completions (or any compatible server via *base_url*)."""

    api_key_env = "OPENAI_API_KEY"
    default_base_url = "https://api.openai.com/v1"

    def __init__(
        self,
        name: str = "openai",
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(name)
        self.api_key = api_key
        self.base_url = base_url or self.default_base_url
        self.timeout = timeout
        self._http_client = http_client
        self._client: openai.AsyncOpenAI | None = None

    @property
    def client(self) -> openai.AsyncOpenAI:
        """The SDK client, created on first use so listing providers needs no key."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key or os.getenv(self.api_key_env),
                base_url=self.base_url,
                http_client=self._http_client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)),
            )
        return self._client

    def _request_kwargs(self, request: ProviderRequest) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": request.model.name,
            **(request.model.params or {}),
            "messages": [to_openai_message(m) for m in request.messages],
        }
        if request.tools:
            kwargs["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": t.name,
                        "description": t.description,
                        "parameters": t.arguments,
                    },
                }
                for t in request.tools
            ]
        response_format = to_response_format(request.format)
        if response_format is not None:
            kwargs["response_format"] = response_format
        return kwargs

    def _usd(self, usage: Any) -> float:
        return 0.0

    async def execute(self, request: ProviderRequest) -> Tuple[List[Message], Cost]:
        started = time.perf_counter()
        resp = await self.client.chat.completions.create(**self._request_kwargs(request))
        elapsed_ms = (time.perf_counter() - started) * 1000

        choice = resp.choices[0].message if resp.choices else None
        tool_calls = None
        if choice is not None and choice.tool_calls:
            tool_calls = [
                ToolCall(
                    id=c.id,
                    function=ToolCallFunction(name=c.function.name, arguments=c.function.arguments or ""),
                )
                for c in choice.tool_calls
            ]
        message = Message(
            role="assistant",
            content=(choice.content if choice is not None else None) or "",
            tool_calls=tool_calls,
        )
        usage = resp.usage
        cost = Cost(
            usd=self._usd(usage) if usage is not None else 0.0,
            tokens=usage.total_tokens if usage is not None else 0,
            ms=elapsed_ms,
        )
        return [message], cost


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter's OpenAI-compatible endpoint; reports USD cost when returned."""

    api_key_env = "OPENROUTER_API_KEY"
    default_base_url = "https://openrouter.ai/api/v1"

    def __init__(self, name: str = "openrouter", api_key: str | None = None, base_url: str | None = None, **kwargs):
        super().__init__(name, api_key, base_url, **kwargs)

    def _usd(self, usage: Any) -> float:
        return float(getattr(usage, "cost", None) or 0.0)
