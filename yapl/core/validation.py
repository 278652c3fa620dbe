from __future__ import annotations
"""Static validation of a parsed document (cycles, output ids, inputs…).

Runs once at load time, before any provider call; the first violation raises.
"""
from typing import Dict, Iterable

from yapl.core.graph import DependencyGraph
from yapl.core.schema import ChainSpec, Document, MultiChainDocument, OutputEntry
from yapl.core.types import DEFAULT_CHAIN_ID, DEFAULT_OUTPUT_ID, RESERVED_INPUTS
from yapl.exceptions import (
    DuplicateOutputError,
    MisplacedDefaultOutputError,
    ReservedInputNameError,
)

__all__ = ["document_chains", "validate_document", "validate_outputs", "validate_inputs"]


def document_chains(doc: Document) -> Dict[str, ChainSpec]:  # noqa: D401
    """Return ``{chain_name: chain}``; a single-chain document is named ``default``."""
    if isinstance(doc, MultiChainDocument):
        return {name: d.chain for name, d in doc.chains.items()}
    return {DEFAULT_CHAIN_ID: doc}


def validate_document(doc: Document, path: str = "<string>") -> None:  # noqa: D401
    """Raise the first :class:`~yapl.exceptions.SchemaValidationError` found in *doc*."""
    if isinstance(doc, MultiChainDocument):
        DependencyGraph.from_mapping(
            {name: d.depends_on for name, d in doc.chains.items()}
        ).validate_dag(path)

    for name, chain in document_chains(doc).items():
        validate_outputs(name, chain, path)

    validate_inputs(doc.inputs or [], path)
    if isinstance(doc, MultiChainDocument):
        for d in doc.chains.values():
            validate_inputs(d.chain.inputs or [], path)


def validate_outputs(name: str, chain: ChainSpec, path: str = "<string>") -> None:
    """Output ids are unique per chain; ``default`` may only name the last message."""
    seen = set()
    last = len(chain.messages) - 1
    for i, raw in enumerate(chain.messages):
        if not isinstance(raw, OutputEntry) or raw.output is None or not raw.output.id:
            continue
        output_id = raw.output.id
        if output_id in seen:
            raise DuplicateOutputError(path, name, output_id)
        if output_id == DEFAULT_OUTPUT_ID and i != last:
            raise MisplacedDefaultOutputError(path, name, output_id)
        seen.add(output_id)


def validate_inputs(inputs: Iterable[str], path: str = "<string>") -> None:
    for i in inputs:
        if i in RESERVED_INPUTS:
            raise ReservedInputNameError(path, i)
