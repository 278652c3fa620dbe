from __future__ import annotations

"""The :class:`Yapl` engine: executes YAML files as chains of LLM messages."""

from pathlib import Path
from typing import Iterable, List, Optional

from yapl.core.chain import Runtime
from yapl.core.program import Program
from yapl.core.schema import Document
from yapl.core.tool import Tool
from yapl.core.types import Cost, Defaults
from yapl.engine.provider import Provider
from yapl.io.cache import Cache
from yapl.utils.logging import log
from yapl.utils.templates import TemplateRenderer
from yapl.yaml_loader import STRING_PATH, load_document, parse_yaml

__all__ = ["Yapl"]


class Yapl:
    """Entry point.

    Args:
        providers: Providers addressable by name from documents.
        tools: Tools documents may reference by name.
        defaults: Provider / model / tools used when a document sets none.
        cache: Optional response cache shared by every program.
        max_tool_rounds: Upper bound on tool-call rounds per output
            (``None`` keeps the loop unbounded).
        strict_templates: Fail on undefined template variables.
    """

    def __init__(
        self,
        *,
        providers: Iterable[Provider],
        tools: Iterable[Tool] = (),
        defaults: Optional[Defaults] = None,
        cache: Optional[Cache] = None,
        max_tool_rounds: Optional[int] = None,
        strict_templates: bool = True,
    ):
        self.providers: List[Provider] = list(providers)
        self.tools: List[Tool] = list(tools)
        self.defaults = defaults
        self.cache = cache
        self.max_tool_rounds = max_tool_rounds
        self.templates = TemplateRenderer(strict=strict_templates)
        self._cost = Cost()

    @property
    def cost(self) -> Cost:
        """Accumulated cost of every completed program call."""
        return self._cost

    def _add_cost(self, cost: Cost) -> None:
        self._cost = self._cost + cost

    # -------------------------------------------------- #
    def load_file(self, path: str | Path) -> Program:
        """Load, validate and return the program in the YAML file at *path*."""
        display, doc = load_document(path)
        log.info("%s: loaded YAML file", display)
        return self._program(display, doc)

    def load_string(self, text: str, path: str = STRING_PATH) -> Program:
        """Like :meth:`load_file` for YAML *text*."""
        return self._program(path, parse_yaml(text, path))

    def _program(self, path: str, doc: Document) -> Program:
        runtime = Runtime(
            path=path,
            renderer=self.templates,
            providers=self.providers,
            tools=self.tools,
            defaults=self.defaults,
            cache=self.cache,
            max_tool_rounds=self.max_tool_rounds,
        )
        return Program(path, doc, runtime, on_cost=self._add_cost)
