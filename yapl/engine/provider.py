from __future__ import annotations

"""Provider contract consumed by the output executor."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from yapl.core.tool import Tool
from yapl.core.types import Cost, Message, Model, OutputFormat

__all__ = ["Provider", "ProviderRequest"]


@dataclass(frozen=True, slots=True)
class ProviderRequest:
    model: Model
    messages: Sequence[Message]
    tools: Sequence[Tool] = field(default_factory=tuple)
    format: Optional[OutputFormat] = None
    type: str = "chat"


class Provider(ABC):
    """A named LLM backend.

    ``execute`` returns the new messages (appended in order to the history)
    and the incremental :class:`~yapl.core.types.Cost` of the call.
    """

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    @abstractmethod
    async def execute(self, request: ProviderRequest) -> Tuple[List[Message], Cost]:
        raise NotImplementedError
