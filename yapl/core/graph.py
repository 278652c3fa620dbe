from __future__ import annotations
"""Chain dependency graph.

Nodes are chain names, edges point from a chain to the chains it
``dependsOn``.  The graph answers two questions: is it a well-formed DAG
(:meth:`DependencyGraph.validate_dag`) and which chains are ready to run once a
set of chains has completed (:meth:`DependencyGraph.frontier`).
"""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Sequence, Set

from yapl.exceptions import CircularDependencyError, UndeclaredDependencyError

__all__ = ["DependencyGraph"]


@dataclass
class DependencyGraph:  # noqa: D101
    depends_on: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, deps: Mapping[str, Sequence[str]]) -> "DependencyGraph":
        return cls({name: list(d) for name, d in deps.items()})

    # -------------------------------------------------- #
    def nodes(self) -> List[str]:
        return list(self.depends_on)

    # -------------------------------------------------- #
    def validate_dag(self, path: str = "<string>") -> None:
        """Ensure every dependency is declared and there are no cycles.

        Depth-first walk with an explicit stack of the chains on the current
        path; meeting one of them again closes a cycle.

        Raises:
            UndeclaredDependencyError: a dependency names an unknown chain.
            CircularDependencyError: a cycle exists; names the chain closing it.
        """
        visited: Set[str] = set()
        stack: List[str] = []

        def _visit(name: str):
            if name in stack:
                raise CircularDependencyError(path, name)
            if name in visited:
                return
            if name not in self.depends_on:
                raise UndeclaredDependencyError(path, name, stack[-1])
            stack.append(name)
            visited.add(name)
            for dep in self.depends_on[name]:
                _visit(dep)
            stack.pop()

        for name in self.depends_on:
            _visit(name)

    # -------------------------------------------------- #
    def frontier(self, satisfied: Set[str]) -> List[str]:
        """Chains not in *satisfied* whose dependencies all are, in declaration order."""
        return [
            name
            for name, deps in self.depends_on.items()
            if name not in satisfied and all(d in satisfied for d in deps)
        ]

    def waves(self) -> Iterator[List[str]]:
        """Yield successive frontiers assuming each wave completes (static plan)."""
        satisfied: Set[str] = set()
        while len(satisfied) < len(self.depends_on):
            wave = self.frontier(satisfied)
            if not wave:
                return
            yield wave
            satisfied.update(wave)
