from __future__ import annotations

"""Chain executor: walks one chain's instruction tape.

Templates are rendered just before each instruction runs so that messages can
reference outputs captured earlier in the same chain (``{{ outputs.x.content }}``)
as well as outputs of chains that already completed
(``{{ chains.facts.outputs.default.value }}``).
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from yapl.core.config import CallConfig, resolve_config
from yapl.core.output import execute_output
from yapl.core.schema import ChainSpec
from yapl.core.tape import (
    ClearInstruction,
    OutputInstruction,
    PushInstruction,
    build_tape,
    render_instruction,
)
from yapl.core.tool import Tool
from yapl.core.types import ChainResult, Cost, Defaults, Message, OutputRecord
from yapl.engine.provider import Provider
from yapl.exceptions import EmptyResponseError
from yapl.io.cache import Cache
from yapl.utils.events import ChainFinished, ChainStarted, OutputFinished, OutputParseFailed, publish
from yapl.utils.logging import log
from yapl.utils.templates import TemplateRenderer

__all__ = ["Runtime", "process_inputs", "execute_chain"]


@dataclass(frozen=True)
class Runtime:
    """Services shared by every chain of one invocation."""

    path: str
    renderer: TemplateRenderer
    providers: Sequence[Provider]
    tools: Sequence[Tool] = ()
    defaults: Optional[Defaults] = None
    cache: Optional[Cache] = None
    max_tool_rounds: Optional[int] = None


def process_inputs(inputs: Mapping[str, Any] | None, declared: Sequence[str] | None) -> Dict[str, Any]:  # noqa: D401
    """Return a private copy of the caller's *inputs*.

    Undeclared inputs are passed through to the templates; declared inputs the
    caller omitted are only reported, the renderer decides whether a missing
    variable is fatal.
    """
    if inputs is None:
        inputs = {}
    if not isinstance(inputs, Mapping):
        raise TypeError(f"inputs must be a mapping, got {type(inputs).__name__}")
    missing = [name for name in (declared or []) if name not in inputs]
    if missing:
        log.debug("declared inputs not provided: %s", ", ".join(missing))
    return dict(inputs)


async def execute_chain(
    chain: ChainSpec,
    *,
    chain_id: str,
    runtime: Runtime,
    inputs: Mapping[str, Any] | None = None,
    chains: Mapping[str, ChainResult] | None = None,
) -> ChainResult:
    """Execute *chain* and return its messages, named outputs and cost.

    *chains* is the read-only snapshot of already completed chains.
    """
    path = runtime.path
    _inputs = process_inputs(inputs, chain.inputs)
    tape = build_tape(chain.messages, path)
    chains_ctx = {name: res.context() for name, res in (chains or {}).items()}

    history: List[Message] = []
    outputs: Dict[str, OutputRecord] = {}
    cost = Cost()

    publish(ChainStarted(path=path, chain_id=chain_id))
    log.debug("%s: chain '%s' starting (%d instructions)", path, chain_id, len(tape))

    for raw in tape:
        context = {
            **_inputs,
            "outputs": {k: v.model_dump(mode="json") for k, v in outputs.items()},
            "chains": chains_ctx,
        }
        inst = await render_instruction(raw, runtime.renderer, context, path)

        # -------------------------------------------------- #
        if isinstance(inst, PushInstruction):
            history.append(inst.message)

        elif isinstance(inst, OutputInstruction):
            history, delta = await _run_output(inst, chain, chain_id, history, runtime)
            cost = cost + delta
            if not history:
                raise EmptyResponseError(path, chain_id, inst.id)
            last = history[-1]
            value = _parse_value(inst, last, chain_id, path)
            if inst.id:
                outputs[inst.id] = OutputRecord.from_message(last, value)

        elif isinstance(inst, ClearInstruction):
            if inst.system or not history or history[0].role != "system":
                history = []
            else:
                history = history[:1]

        else:
            raise TypeError(f"Unsupported instruction type: {type(inst).__name__}")

    result = ChainResult(messages=list(history), outputs=outputs, cost=cost)
    publish(ChainFinished(path=path, chain_id=chain_id, outputs=list(outputs), cost=cost))
    return result


async def _run_output(
    inst: OutputInstruction,
    chain: ChainSpec,
    chain_id: str,
    history: List[Message],
    runtime: Runtime,
):
    tools = [*(chain.tools or []), *(inst.tools or [])]
    config = resolve_config(
        CallConfig(provider=inst.provider, model=inst.model, tools=tools),
        CallConfig(provider=chain.provider, model=chain.model),
        CallConfig.from_defaults(runtime.defaults),
        providers=runtime.providers,
        tools=runtime.tools,
        path=runtime.path,
    )
    messages, delta = await execute_output(
        history,
        config,
        inst.format,
        cache=runtime.cache,
        path=runtime.path,
        max_tool_rounds=runtime.max_tool_rounds,
    )
    publish(OutputFinished(
        path=runtime.path,
        chain_id=chain_id,
        output_id=inst.id,
        provider=config.provider.name,
        model=config.model.name,
        cost=delta,
    ))
    return messages, delta


def _parse_value(inst: OutputInstruction, last: Message, chain_id: str, path: str) -> Any:
    if inst.format is None or not inst.format.wants_json:
        return None
    try:
        return json.loads(last.content)
    except json.JSONDecodeError as exc:
        log.warning("%s: Failed to parse JSON: %s\nResponse: %s", path, exc, last.content)
        publish(OutputParseFailed(path=path, chain_id=chain_id, output_id=inst.id, error=str(exc)))
        return None
