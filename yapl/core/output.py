from __future__ import annotations

"""Output executor: one ``output`` instruction, end to end.

0. If the pre-call history is in the cache, append the cached reply and stop.
1. Otherwise call the provider with the full history.
2. If the reply requests tool calls, run them, append their results and call
   the provider again; repeat until a reply carries no tool calls.
3. Store the appended messages in the cache.

Tool argument and tool execution failures are fed back to the model as
``tool`` messages so it can correct itself.  A call to a tool that is not in
the output's tool set means the document is misconfigured and aborts the run.
"""

import json
from typing import List, Optional, Sequence, Tuple

import jsonschema

from yapl.core.config import ResolvedConfig
from yapl.core.tool import Tool
from yapl.core.types import Cost, Message, OutputFormat, ToolCall
from yapl.engine.provider import ProviderRequest
from yapl.exceptions import ToolRoundLimitError, UnknownToolError
from yapl.io.cache import Cache, cache_metadata, hash_key
from yapl.utils.events import CacheHit, ToolCalled, publish
from yapl.utils.logging import log

__all__ = ["execute_output", "run_tool_loop", "run_tool_call"]


async def execute_output(
    messages: Sequence[Message],
    config: ResolvedConfig,
    format: OutputFormat | None = None,
    *,
    cache: Cache | None = None,
    path: str = "<string>",
    max_tool_rounds: int | None = None,
) -> Tuple[List[Message], Cost]:
    """Execute one call point; return ``(all_messages, incremental_cost)``."""
    log.debug(
        "%s: resolved config provider=%s model=%s tools=%s",
        path, config.provider.name, config.model.name, [t.name for t in config.tools],
    )
    metadata = cache_metadata(config.provider.name, config.model, config.tools, format)
    key = hash_key(metadata, messages) if cache is not None else None

    if cache is not None:
        cached = await cache.get(key)
        if cached:
            log.debug("%s: cache hit %s", path, key)
            publish(CacheHit(path=path, key=key))
            return [*messages, *cached], Cost()
        log.debug("%s: cache miss %s", path, key)

    all_messages, cost = await run_tool_loop(
        messages, config, format, path=path, max_rounds=max_tool_rounds
    )

    if cache is not None:
        await cache.set(key, all_messages[len(messages):], metadata)

    return all_messages, cost


async def run_tool_loop(
    messages: Sequence[Message],
    config: ResolvedConfig,
    format: OutputFormat | None = None,
    *,
    path: str = "<string>",
    max_rounds: int | None = None,
) -> Tuple[List[Message], Cost]:
    """Call the provider until its reply carries no tool calls."""
    history: List[Message] = list(messages)
    cost = Cost()
    rounds = 0

    while True:
        request = ProviderRequest(
            model=config.model,
            messages=tuple(history),
            tools=tuple(config.tools),
            format=format,
        )
        new_messages, delta = await config.provider.execute(request)
        log.debug("%s: received %d message(s) from %s", path, len(new_messages), config.provider.name)
        cost = cost + delta
        history.extend(new_messages)

        calls = new_messages[-1].tool_calls if new_messages else None
        if not calls:
            return history, cost

        if max_rounds is not None and rounds >= max_rounds:
            raise ToolRoundLimitError(path, max_rounds)
        rounds += 1

        for call in calls:
            history.append(await run_tool_call(call, config.tools, path=path))


async def run_tool_call(call: ToolCall, tools: Sequence[Tool], *, path: str = "<string>") -> Message:  # noqa: D401
    """Run one model-requested tool call and return the ``tool`` reply message."""
    name = call.function.name
    tool: Optional[Tool] = next((t for t in tools if t.name == name), None)
    if tool is None:
        raise UnknownToolError(path, name)

    log.debug("%s: executing tool call %s (%s)", path, name, call.id)
    try:
        args = json.loads(call.function.arguments or "{}")
        jsonschema.validate(args, tool.arguments)
    except json.JSONDecodeError as exc:
        return _tool_error(path, call, f"Tool call {name} arguments failed to parse: {exc}")
    except jsonschema.ValidationError as exc:
        return _tool_error(path, call, f"Tool call {name} arguments failed to validate: {exc.message}")
    except jsonschema.SchemaError as exc:
        return _tool_error(path, call, f"Tool call {name} has an invalid argument schema: {exc.message}")

    try:
        result = await tool.execute(args)
    except Exception as exc:  # noqa: BLE001
        return _tool_error(path, call, f"Tool call {name} failed: {exc}")

    publish(ToolCalled(path=path, tool=name, call_id=call.id, ok=True))
    return Message(role="tool", content=result, tool_call_id=call.id)


def _tool_error(path: str, call: ToolCall, error: str) -> Message:
    log.warning("%s: %s", path, error)
    publish(ToolCalled(path=path, tool=call.function.name, call_id=call.id, ok=False))
    return Message(role="tool", content=f"Error: {error}", tool_call_id=call.id)
