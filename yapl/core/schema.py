from __future__ import annotations

"""Document shape for yapl YAML files.

A document is either a single chain::

    model: gpt-4o-mini
    provider: openai
    messages:
      - system: You are terse.
      - user: "{{ question }}"
      - output

or a map of named chains with dependencies::

    chains:
      facts:
        chain: {messages: [...]}
      default:
        dependsOn: [facts]
        chain: {messages: [...]}

Only the *shape* is checked here; semantic rules (cycles, duplicate output ids,
reserved inputs) live in :mod:`yapl.core.validation`.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from yapl.core.types import Model, OutputFormat
from yapl.exceptions import InvalidDocumentError

__all__ = [
    "RoleMessage",
    "UserMessage",
    "AssistantMessage",
    "SystemMessage",
    "OutputSpec",
    "OutputEntry",
    "ClearSpec",
    "ClearEntry",
    "RawMessage",
    "ChainSpec",
    "ChainDefinition",
    "MultiChainDocument",
    "Document",
    "parse_document",
    "document_json_schema",
]


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class RoleMessage(_Strict):
    role: Literal["user", "assistant", "system"]
    content: str


class UserMessage(_Strict):
    user: str


class AssistantMessage(_Strict):
    assistant: str


class SystemMessage(_Strict):
    system: str


class OutputSpec(_Strict):
    id: Optional[str] = None
    tools: Optional[List[str]] = None
    model: Union[str, Model, None] = None
    provider: Optional[str] = None
    format: Optional[OutputFormat] = None


class OutputEntry(_Strict):
    output: Optional[OutputSpec]


class ClearSpec(_Strict):
    system: Optional[bool] = Field(default=None, description="Whether to clear the system message too.")


class ClearEntry(_Strict):
    clear: Optional[ClearSpec]


RawMessage = Union[
    Literal["output", "clear"],
    RoleMessage,
    UserMessage,
    AssistantMessage,
    SystemMessage,
    OutputEntry,
    ClearEntry,
]


class _Common(_Strict):
    provider: Optional[str] = Field(default=None, description="Provider used by every output.")
    model: Union[str, Model, None] = Field(default=None, description="Model used by every output.")
    inputs: Optional[List[str]] = Field(default=None, description="Declared template inputs.")
    tools: Optional[List[str]] = Field(default=None, description="Tools offered to every output.")


class ChainSpec(_Common):
    messages: List[RawMessage]


class ChainDefinition(_Strict):
    depends_on: List[str] = Field(default_factory=list, alias="dependsOn")
    chain: ChainSpec


class MultiChainDocument(_Common):
    chains: Dict[str, ChainDefinition]


Document = Union[ChainSpec, MultiChainDocument]

_ADAPTER: TypeAdapter[Document] = TypeAdapter(Document)


def parse_document(data: Any, path: str) -> Document:  # noqa: D401
    """Validate *data* (already YAML-decoded) against the document shape."""
    if not isinstance(data, dict):
        raise InvalidDocumentError(path, f"expected a mapping at top level, got {type(data).__name__}")
    try:
        return _ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise InvalidDocumentError(path, f"invalid document:\n{exc}") from exc


def document_json_schema() -> Dict[str, Any]:  # noqa: D401
    """Return the JSON schema of yapl documents (for editors / linters)."""
    return _ADAPTER.json_schema(by_alias=True)
