from __future__ import annotations

"""Core value types shared by every yapl layer.

Messages, models and output records are pydantic models so they can be dumped
into template contexts and cache files without custom encoders.  Cost and the
result containers are plain dataclasses.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "DEFAULT_CHAIN_ID",
    "DEFAULT_OUTPUT_ID",
    "RESERVED_INPUTS",
    "Role",
    "ToolCallFunction",
    "ToolCall",
    "Message",
    "Model",
    "ModelLike",
    "to_model",
    "OutputFormat",
    "OutputRecord",
    "Cost",
    "ChainResult",
    "CallResult",
    "Defaults",
]

DEFAULT_CHAIN_ID = "default"
DEFAULT_OUTPUT_ID = "default"

# Names taken by the builtins context; user inputs may not shadow them.
RESERVED_INPUTS = ("outputs", "chains")

Role = Literal["user", "assistant", "system", "tool"]


class ToolCallFunction(BaseModel):
    name: str
    arguments: str = ""


class ToolCall(BaseModel):
    id: str
    type: Literal["function"] = "function"
    function: ToolCallFunction


class Message(BaseModel):
    """One conversation turn."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None

    def dump(self) -> Dict[str, Any]:
        """Return a plain dict without unset optional keys."""
        return self.model_dump(mode="json", exclude_none=True)


class Model(BaseModel):
    name: str
    params: Optional[Dict[str, Any]] = None


ModelLike = Union[str, Model, Dict[str, Any], None]


def to_model(value: ModelLike) -> Model | None:  # noqa: D401
    """Normalise a model name / mapping / :class:`Model` into a :class:`Model`.

    Empty names count as "no model" so that an output-level ``model: ""``
    falls back to the chain or engine default.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return Model(name=value) if value else None
    if isinstance(value, dict):
        value = Model.model_validate(value)
    return value if value.name else None


class OutputFormat(BaseModel):
    """Response format requested by an ``output``.

    ``json`` is either ``True`` (any JSON object) or a JSON schema string.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    json_: Union[bool, str, None] = Field(default=None, alias="json")

    @property
    def wants_json(self) -> bool:
        return bool(self.json_)

    def dump(self) -> Dict[str, Any]:
        return {} if self.json_ is None else {"json": self.json_}


class OutputRecord(BaseModel):
    """The trailing message of an ``output`` plus its parsed JSON value."""

    role: Role
    content: str = ""
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None
    value: Any = None

    @classmethod
    def from_message(cls, message: Message, value: Any = None) -> "OutputRecord":
        return cls(**message.model_dump(), value=value)


@dataclass(frozen=True, slots=True)
class Cost:
    usd: float = 0.0
    tokens: int = 0
    ms: float = 0.0

    def __add__(self, other: "Cost") -> "Cost":
        return Cost(
            usd=self.usd + other.usd,
            tokens=self.tokens + other.tokens,
            ms=self.ms + other.ms,
        )


@dataclass(frozen=True)
class ChainResult:
    """Messages and named outputs of one completed chain."""

    messages: List[Message]
    outputs: Mapping[str, OutputRecord]
    cost: Cost = field(default_factory=Cost)

    def __post_init__(self):
        object.__setattr__(self, "outputs", MappingProxyType(dict(self.outputs)))

    def context(self) -> Dict[str, Any]:
        """Shape exposed to templates as ``chains.<name>``."""
        return {
            "messages": [m.dump() for m in self.messages],
            "outputs": {k: v.model_dump(mode="json") for k, v in self.outputs.items()},
        }


@dataclass(frozen=True)
class CallResult:
    """Result of one program invocation.

    ``messages``, ``output``, ``content`` and ``value`` are shorthands for the
    default output of the default chain and are ``None`` when it is missing.
    """

    messages: Optional[List[Message]]
    output: Optional[OutputRecord]
    content: Optional[str]
    value: Any
    chains: Mapping[str, ChainResult]
    cost: Cost = field(default_factory=Cost)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "messages": None if self.messages is None else [m.dump() for m in self.messages],
            "output": None if self.output is None else self.output.model_dump(mode="json", exclude_none=True),
            "content": self.content,
            "value": self.value,
            "chains": {name: res.context() for name, res in self.chains.items()},
            "cost": {"usd": self.cost.usd, "tokens": self.cost.tokens, "ms": self.cost.ms},
        }


@dataclass(frozen=True)
class Defaults:
    """Provider / model / tools used when neither output nor chain sets them."""

    provider: Optional[str] = None
    model: ModelLike = None
    tools: Optional[List[str]] = None
