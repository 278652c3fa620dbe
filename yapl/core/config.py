from __future__ import annotations

"""Configuration resolution for a single ``output`` call.

Each field (provider, model, tools) is resolved independently: the first level
that sets it to a non-empty value wins.  Levels are passed most specific first,
typically ``output → chain → engine defaults``.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from yapl.core.tool import Tool
from yapl.core.types import Defaults, Model, ModelLike, to_model
from yapl.engine.provider import Provider
from yapl.exceptions import (
    NoModelConfiguredError,
    NoProviderConfiguredError,
    ProviderNotFoundError,
    ToolNotFoundError,
)

__all__ = ["CallConfig", "ResolvedConfig", "resolve_config"]


@dataclass(frozen=True, slots=True)
class CallConfig:
    """Provider / model / tool names requested at one level."""

    provider: Optional[str] = None
    model: ModelLike = None
    tools: Optional[Sequence[str]] = None

    @classmethod
    def from_defaults(cls, defaults: Defaults | None) -> "CallConfig":
        if defaults is None:
            return cls()
        return cls(provider=defaults.provider, model=defaults.model, tools=defaults.tools)


@dataclass(frozen=True)
class ResolvedConfig:
    provider: Provider
    model: Model
    tools: List[Tool]


def resolve_config(
    output: CallConfig,
    *defaults: CallConfig,
    providers: Sequence[Provider],
    tools: Sequence[Tool],
    path: str = "<string>",
) -> ResolvedConfig:  # noqa: D401
    """Pick the effective provider, model and tools for one call.

    Raises:
        NoModelConfiguredError: no level sets a model.
        NoProviderConfiguredError: no level names a provider.
        ProviderNotFoundError: the provider name is not registered.
        ToolNotFoundError: a tool name is not registered.
    """
    levels = (output, *defaults)

    model = next((m for m in (to_model(lv.model) for lv in levels) if m is not None), None)
    if model is None:
        raise NoModelConfiguredError(path)

    provider_name = next((lv.provider for lv in levels if lv.provider), None)
    if not provider_name:
        raise NoProviderConfiguredError(path)
    provider = next((p for p in providers if p.name == provider_name), None)
    if provider is None:
        raise ProviderNotFoundError(path, provider_name)

    tool_names = next((list(lv.tools) for lv in levels if lv.tools), [])
    by_name = {}
    for t in tools:
        by_name.setdefault(t.name, t)
    resolved_tools: List[Tool] = []
    for name in dict.fromkeys(tool_names):  # dedupe, first-seen order
        if name not in by_name:
            raise ToolNotFoundError(path, name)
        resolved_tools.append(by_name[name])

    return ResolvedConfig(provider=provider, model=model, tools=resolved_tools)
