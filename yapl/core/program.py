from __future__ import annotations

"""Program scheduler: runs a loaded document.

Single-chain documents run once under the ``default`` chain id.  Multi-chain
documents run in dependency waves: every chain whose dependencies completed is
started concurrently, and the ``chains`` template context handed to a wave is
an immutable snapshot rebuilt only after the previous wave finished.
"""

from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

import anyio

from yapl.core.chain import Runtime, execute_chain
from yapl.core.graph import DependencyGraph
from yapl.core.schema import ChainSpec, Document, MultiChainDocument
from yapl.core.types import DEFAULT_CHAIN_ID, DEFAULT_OUTPUT_ID, CallResult, ChainResult, Cost
from yapl.exceptions import CircularDependencyError
from yapl.utils.logging import log

__all__ = ["Program", "run_program", "inherit_defaults"]


def inherit_defaults(doc: MultiChainDocument, name: str) -> ChainSpec:  # noqa: D401
    """Chain *name* with document-level provider/model/tools filled in."""
    chain = doc.chains[name].chain
    return chain.model_copy(update={
        "provider": chain.provider or doc.provider,
        "model": chain.model or doc.model,
        "tools": chain.tools if chain.tools is not None else doc.tools,
    })


async def run_program(
    doc: Document,
    runtime: Runtime,
    inputs: Mapping[str, Any] | None = None,
) -> CallResult:
    """Execute *doc* (already validated) and assemble the call result."""
    if isinstance(doc, MultiChainDocument):
        results = await _run_waves(doc, runtime, inputs)
    else:
        result = await execute_chain(doc, chain_id=DEFAULT_CHAIN_ID, runtime=runtime, inputs=inputs)
        results = {DEFAULT_CHAIN_ID: result}
    return _call_result(results)


async def _run_waves(
    doc: MultiChainDocument,
    runtime: Runtime,
    inputs: Mapping[str, Any] | None,
) -> Dict[str, ChainResult]:
    graph = DependencyGraph.from_mapping({name: d.depends_on for name, d in doc.chains.items()})
    snapshot: Mapping[str, ChainResult] = MappingProxyType({})
    satisfied: set[str] = set()

    while len(satisfied) < len(graph.depends_on):
        wave = graph.frontier(satisfied)
        if not wave:
            pending = next(n for n in graph.nodes() if n not in satisfied)
            raise CircularDependencyError(runtime.path, pending)
        log.debug("%s: running wave %s", runtime.path, wave)

        wave_results: Dict[str, ChainResult] = {}

        async def _run(name: str, chains: Mapping[str, ChainResult]):
            wave_results[name] = await execute_chain(
                inherit_defaults(doc, name),
                chain_id=name,
                runtime=runtime,
                inputs=inputs,
                chains=chains,
            )

        try:
            async with anyio.create_task_group() as tg:
                for name in wave:
                    tg.start_soon(_run, name, snapshot)
        except BaseExceptionGroup as eg:
            if len(eg.exceptions) == 1:
                raise eg.exceptions[0] from None
            raise

        snapshot = MappingProxyType({**snapshot, **{n: wave_results[n] for n in wave}})
        satisfied.update(wave)

    return dict(snapshot)


def _call_result(results: Dict[str, ChainResult]) -> CallResult:
    default = results.get(DEFAULT_CHAIN_ID)
    output = default.outputs.get(DEFAULT_OUTPUT_ID) if default is not None else None
    cost = Cost()
    for res in results.values():
        cost = cost + res.cost
    return CallResult(
        messages=list(default.messages) if default is not None else None,
        output=output,
        content=output.content if output is not None else None,
        value=output.value if output is not None else None,
        chains=MappingProxyType(results),
        cost=cost,
    )


class Program:
    """A loaded, validated document; call it with inputs to execute it.

    >>> program = yapl.load_file("summarise.yml")
    >>> result = await program({"text": "..."})
    """

    def __init__(
        self,
        path: str,
        document: Document,
        runtime: Runtime,
        on_cost: Optional[Callable[[Cost], None]] = None,
    ):
        self.path = path
        self.document = document
        self.runtime = runtime
        self._on_cost = on_cost

    def __repr__(self) -> str:
        return f"Program(path={self.path!r}, chains={self.chain_names()!r})"

    # -------------------------------------------------- #
    def chain_names(self) -> List[str]:
        if isinstance(self.document, MultiChainDocument):
            return list(self.document.chains)
        return [DEFAULT_CHAIN_ID]

    def waves(self) -> List[List[str]]:
        """Static execution plan: chain names grouped by dependency wave."""
        if isinstance(self.document, MultiChainDocument):
            deps = {name: d.depends_on for name, d in self.document.chains.items()}
            return list(DependencyGraph.from_mapping(deps).waves())
        return [[DEFAULT_CHAIN_ID]]

    # -------------------------------------------------- #
    async def __call__(self, inputs: Mapping[str, Any] | None = None) -> CallResult:
        log.info("%s: calling program", self.path)
        result = await run_program(self.document, self.runtime, inputs)
        if self._on_cost is not None:
            self._on_cost(result.cost)
        return result

    def run_sync(self, inputs: Mapping[str, Any] | None = None) -> CallResult:  # noqa: D401
        """Blocking helper for scripts: ``anyio.run`` around :meth:`__call__`."""
        return anyio.run(self.__call__, inputs)
