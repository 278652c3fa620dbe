from __future__ import annotations
"""Rich-backed logging for yapl.

Library modules log through ``getLogger("yapl")``; nothing is configured on
import.  The CLI (or any application) calls :func:`setup` once to attach a
:class:`rich.logging.RichHandler`.
"""
from logging import DEBUG, ERROR, INFO, WARNING, Formatter, Logger, getLogger

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["console", "log", "get", "setup"]

console = Console(stderr=True)

_LEVEL_MAP = {
    "info": INFO,
    "debug": DEBUG,
    "warning": WARNING,
    "error": ERROR,
}

log: Logger = getLogger("yapl")


def get(level: str = "info") -> Logger:  # noqa: D401
    """Return the yapl logger set to *level* (str)."""
    lvl = _LEVEL_MAP.get(level.lower(), INFO)
    lg = getLogger("yapl")
    lg.setLevel(lvl)
    return lg


def setup(level: str = "info") -> Logger:  # noqa: D401
    """Attach a RichHandler to the yapl logger (idempotent)."""
    lg = get(level)
    if not any(isinstance(h, RichHandler) for h in lg.handlers):
        handler = RichHandler(console=console, rich_tracebacks=True, markup=False, show_path=False)
        handler.setFormatter(Formatter("%(message)s", datefmt="%H:%M:%S"))
        lg.addHandler(handler)
        lg.propagate = False
    return lg