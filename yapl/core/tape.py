from __future__ import annotations

"""Instruction tape: the normalised form of a chain's ``messages`` list.

Every raw message becomes exactly one instruction:

* :class:`PushInstruction` – append a (templated) message to the history.
* :class:`OutputInstruction` – call the provider.
* :class:`ClearInstruction` – drop the live history.

The tape always ends with an output, and that last output is named
``default`` when the document leaves it unnamed.
"""

from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from yapl.core.schema import (
    AssistantMessage,
    ClearEntry,
    OutputEntry,
    OutputSpec,
    RawMessage,
    RoleMessage,
    SystemMessage,
    UserMessage,
)
from yapl.core.types import DEFAULT_OUTPUT_ID, Message, Model, OutputFormat, to_model
from yapl.exceptions import InvalidDocumentError
from yapl.utils.templates import TemplateRenderer

__all__ = [
    "PushInstruction",
    "OutputInstruction",
    "ClearInstruction",
    "Instruction",
    "to_instruction",
    "build_tape",
    "render_instruction",
]


@dataclass(frozen=True, slots=True)
class PushInstruction:
    message: Message


@dataclass(frozen=True, slots=True)
class OutputInstruction:
    id: Optional[str] = None
    model: Optional[Model] = None
    provider: Optional[str] = None
    tools: Optional[Tuple[str, ...]] = None
    format: Optional[OutputFormat] = None


@dataclass(frozen=True, slots=True)
class ClearInstruction:
    system: bool = False


Instruction = Union[PushInstruction, OutputInstruction, ClearInstruction]


def _strip_newline(content: str) -> str:
    # YAML block scalars add one trailing newline; only that one is removed.
    return content[:-1] if content.endswith("\n") else content


def _push(role: str, content: str) -> PushInstruction:
    return PushInstruction(Message(role=role, content=_strip_newline(content)))


def to_instruction(raw: RawMessage, path: str = "<string>") -> Instruction:  # noqa: D401
    """Map one raw document message to its instruction."""
    if raw == "output":
        return OutputInstruction()
    if raw == "clear":
        return ClearInstruction()
    if isinstance(raw, OutputEntry):
        spec = raw.output or OutputSpec()
        return OutputInstruction(
            id=spec.id,
            model=to_model(spec.model),
            provider=spec.provider,
            tools=tuple(spec.tools) if spec.tools is not None else None,
            format=spec.format,
        )
    if isinstance(raw, ClearEntry):
        return ClearInstruction(system=bool(raw.clear and raw.clear.system))
    if isinstance(raw, RoleMessage):
        return _push(raw.role, raw.content)
    if isinstance(raw, UserMessage):
        return _push("user", raw.user)
    if isinstance(raw, AssistantMessage):
        return _push("assistant", raw.assistant)
    if isinstance(raw, SystemMessage):
        return _push("system", raw.system)
    raise InvalidDocumentError(path, f"Invalid message type: {raw!r}")


def build_tape(messages: Sequence[RawMessage], path: str = "<string>") -> List[Instruction]:  # noqa: D401
    """Return the instruction tape for a chain's raw *messages*."""
    tape: List[Instruction] = [to_instruction(m, path) for m in messages]
    if not tape or not isinstance(tape[-1], OutputInstruction):
        tape.append(OutputInstruction())
    last = tape[-1]
    if not last.id:
        tape[-1] = replace(last, id=DEFAULT_OUTPUT_ID)
    return tape


async def render_instruction(
    inst: Instruction,
    renderer: TemplateRenderer,
    context: Mapping[str, Any],
    path: str = "<string>",
) -> Instruction:
    """Return a copy of *inst* with its template fields rendered against *context*."""
    if isinstance(inst, PushInstruction):
        content = await renderer.render(inst.message.content, context, path=path)
        return replace(inst, message=inst.message.model_copy(update={"content": content}))
    if isinstance(inst, OutputInstruction):
        if inst.format is not None and isinstance(inst.format.json_, str):
            schema = await renderer.render(inst.format.json_, context, path=path)
            return replace(inst, format=OutputFormat(json=schema))
        return inst
    if isinstance(inst, ClearInstruction):
        return inst
    raise TypeError(f"Unsupported instruction type: {type(inst).__name__}")
