from __future__ import annotations

"""Tools integrate plain Python callables into an ``output``.

The model calls a tool with JSON arguments; the callable receives them as
keyword arguments and returns the string fed back to the model.  Synchronous
callables run in a worker thread so they never block the event loop.
"""

import functools
import inspect
import json
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import anyio

__all__ = ["Tool", "tool"]

ToolFn = Callable[..., Union[str, Any, Awaitable[Any]]]


class Tool:  # noqa: D101
    type = "function"

    def __init__(
        self,
        fn: ToolFn,
        *,
        name: str | None = None,
        description: str | None = None,
        arguments: Optional[Dict[str, Any]] = None,
    ):
        self.fn = fn
        self.name = name or fn.__name__
        self.description = description if description is not None else (inspect.getdoc(fn) or "")
        self.arguments: Dict[str, Any] = arguments or {"type": "object", "properties": {}}

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r})"

    # -------------------------------------------------- #

    def describe(self) -> Dict[str, Any]:
        """Serializable description (no executor) used for cache keys and metadata."""
        return {
            "type": self.type,
            "function": {
                "name": self.name,
                "description": self.description,
                "arguments": self.arguments,
            },
        }

    async def execute(self, args: Any) -> str:
        """Run the tool with already-validated *args*; return its string result."""
        if isinstance(args, dict):
            call = functools.partial(self.fn, **args)
        else:
            call = functools.partial(self.fn, args)

        if inspect.iscoroutinefunction(self.fn):
            result = await call()
        else:
            result = await anyio.to_thread.run_sync(call)
            if inspect.isawaitable(result):
                result = await result

        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)


# Convenience helpers ------------------------------------------------------- #

def tool(
    fn: ToolFn | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    arguments: Optional[Dict[str, Any]] = None,
):  # noqa: D401
    """Return a :class:`Tool` from *fn*; usable bare or with keyword options.

    >>> @tool(arguments={"type": "object", "properties": {"city": {"type": "string"}}})
    ... def weather(city: str) -> str:
    ...     '''Current weather for a city.'''
    ...     return "sunny"
    """
    if fn is None:
        return functools.partial(tool, name=name, description=description, arguments=arguments)
    return Tool(fn, name=name, description=description, arguments=arguments)
