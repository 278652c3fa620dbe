"""Ultra-lightweight pub/sub event bus for execution progress.

Example
-------
```python
from yapl.utils.events import subscribe, publish, ChainStarted

@subscribe(ChainStarted)
def _on_chain(evt: ChainStarted):
    print(f"running chain {evt.chain_id}")

publish(ChainStarted(path="demo.yml", chain_id="default"))
```
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Type, TypeVar

from yapl.core.types import Cost

__all__ = [
    "Event",
    "ChainStarted",
    "ChainFinished",
    "OutputFinished",
    "CacheHit",
    "ToolCalled",
    "OutputParseFailed",
    "subscribe",
    "unsubscribe",
    "publish",
]

T = TypeVar("T", bound="Event")
_Handler = Callable[[Any], None]
_REGISTRY: Dict[Type["Event"], List[_Handler]] = {}


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, kw_only=True)
class Event:  # noqa: D101 – base event
    ts: datetime = field(default_factory=_now)
    path: str


# --------------------------------------------------------------------------- #
# Concrete events
# --------------------------------------------------------------------------- #
@dataclass(slots=True, kw_only=True)
class ChainStarted(Event):
    chain_id: str


@dataclass(slots=True, kw_only=True)
class ChainFinished(Event):
    chain_id: str
    outputs: List[str]
    cost: Cost


@dataclass(slots=True, kw_only=True)
class OutputFinished(Event):
    chain_id: str
    output_id: str | None
    provider: str
    model: str
    cost: Cost


@dataclass(slots=True, kw_only=True)
class CacheHit(Event):
    key: str


@dataclass(slots=True, kw_only=True)
class ToolCalled(Event):
    tool: str
    call_id: str
    ok: bool


@dataclass(slots=True, kw_only=True)
class OutputParseFailed(Event):
    chain_id: str
    output_id: str | None
    error: str


# --------------------------------------------------------------------------- #
# API helpers
# --------------------------------------------------------------------------- #

def subscribe(event_type: Type[T]):  # noqa: D401
    """Decorator: register *func* to receive *event_type* events."""

    def _decorator(func: _Handler) -> _Handler:
        _REGISTRY.setdefault(event_type, []).append(func)
        return func

    return _decorator


def unsubscribe(event_type: Type[T], func: _Handler) -> None:
    handlers = _REGISTRY.get(event_type, [])
    if func in handlers:
        handlers.remove(func)


def publish(evt: Event) -> None:  # noqa: D401
    """Publish an event to all registered subscribers."""
    for func in list(_REGISTRY.get(type(evt), [])):
        try:
            func(evt)
        except Exception as e:  # noqa: BLE001
            # subscriber errors are logged, never raised
            from yapl.utils.logging import log

            log.warning("event handler %s failed: %s", getattr(func, "__name__", func), e)
