from __future__ import annotations

"""DAG helpers (no side-effects).

iter_instructions(program) yields (wave, chain, instruction) in plan order.
build_rich_tree(program) returns a Rich *Tree* ready for printing.
"""
from typing import TYPE_CHECKING, Iterator, Tuple

from yapl.core.schema import MultiChainDocument
from yapl.core.tape import ClearInstruction, Instruction, OutputInstruction, PushInstruction, build_tape

if TYPE_CHECKING:  # pragma: no cover
    from rich.tree import Tree

    from yapl.core.program import Program

__all__ = [
    "iter_instructions",
    "describe_instruction",
    "build_rich_tree",
]


def iter_instructions(program: "Program") -> Iterator[Tuple[int, str, Instruction]]:  # noqa: D401
    """Yield *(wave_no, chain_name, instruction)* for every tape entry."""
    doc = program.document
    for wave_no, wave in enumerate(program.waves()):
        for name in wave:
            chain = doc.chains[name].chain if isinstance(doc, MultiChainDocument) else doc
            for inst in build_tape(chain.messages, program.path):
                yield wave_no, name, inst


def describe_instruction(inst: Instruction, width: int = 60) -> str:
    """One-line label for *inst*."""
    if isinstance(inst, PushInstruction):
        text = inst.message.content.replace("\n", " ")
        if len(text) > width:
            text = text[: width - 1] + "…"
        return f"{inst.message.role}: {text}"
    if isinstance(inst, OutputInstruction):
        parts = [f"output [bold]{inst.id}[/]" if inst.id else "output"]
        if inst.provider:
            parts.append(f"provider={inst.provider}")
        if inst.model:
            parts.append(f"model={inst.model.name}")
        if inst.tools:
            parts.append(f"tools={','.join(inst.tools)}")
        if inst.format is not None and inst.format.wants_json:
            parts.append("json")
        return " ".join(parts)
    if isinstance(inst, ClearInstruction):
        return "clear (system)" if inst.system else "clear"
    raise TypeError(f"Unsupported instruction type: {type(inst).__name__}")


def build_rich_tree(program: "Program") -> "Tree":  # noqa: D401
    """Return a *rich.tree.Tree* of waves → chains → instructions."""
    from rich.markup import escape
    from rich.tree import Tree  # local import keeps this module lightweight

    tree = Tree(f"[bold]{escape(program.path)}[/]")
    doc = program.document
    for wave_no, wave in enumerate(program.waves()):
        w = tree.add(f"[dim]wave {wave_no + 1} ⨉ {len(wave)}[/]")
        for name in wave:
            if isinstance(doc, MultiChainDocument):
                chain = doc.chains[name].chain
                deps = doc.chains[name].depends_on
            else:
                chain, deps = doc, []
            label = f"[magenta]{escape(name)}[/]"
            if deps:
                label += f" [dim]← {escape(', '.join(deps))}[/]"
            c = w.add(label)
            for inst in build_tape(chain.messages, program.path):
                style = "cyan" if isinstance(inst, OutputInstruction) else "white"
                if isinstance(inst, PushInstruction):
                    c.add(f"[{style}]{escape(describe_instruction(inst))}[/]")
                else:
                    c.add(f"[{style}]{describe_instruction(inst)}[/]")
    return tree
