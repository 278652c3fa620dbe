from __future__ import annotations

"""Response caches for the output executor.

A cache entry maps the *pre-call* state of an ``output`` (provider, model,
tools, format and message history) to the messages that call appended.
Keys are sha256 digests of a canonical JSON serialisation, so any change in
the history or configuration yields a different key.
"""

import json
from hashlib import sha256
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable
from uuid import uuid4

import anyio

from yapl.core.tool import Tool
from yapl.core.types import Message, Model, OutputFormat

__all__ = [
    "Cache",
    "MemoryCache",
    "FileCache",
    "cache_metadata",
    "serialize_key",
    "hash_key",
]


@runtime_checkable
class Cache(Protocol):
    async def get(self, key: str) -> Optional[List[Message]]: ...

    async def set(self, key: str, value: List[Message], metadata: Dict[str, Any]) -> None: ...


# --------------------------------------------------------------------------- #
# Keys
# --------------------------------------------------------------------------- #

def cache_metadata(
    provider: str,
    model: Model,
    tools: Sequence[Tool],
    format: OutputFormat | None,
) -> Dict[str, Any]:  # noqa: D401
    """Metadata stored next to a cache entry (tools without their executors)."""
    return {
        "provider": provider,
        "model": model.model_dump(mode="json", exclude_none=True),
        "tools": [t.describe() for t in tools],
        "format": format.dump() if format is not None else None,
    }


def _serialize_message(message: Message) -> List[Any]:
    msg: List[Any] = [message.role, message.content]
    if message.tool_calls:
        msg.append([[c.function.name, c.function.arguments] for c in message.tool_calls])
    return msg


def serialize_key(metadata: Dict[str, Any], messages: Sequence[Message]) -> List[Any]:  # noqa: D401
    """Return the list hashed by :func:`hash_key`."""
    return [
        metadata["provider"],
        metadata["model"],
        metadata["format"],
        [
            [t["type"], t["function"]["name"], t["function"]["description"], t["function"]["arguments"]]
            for t in metadata["tools"]
        ],
        [_serialize_message(m) for m in messages],
    ]


def hash_key(metadata: Dict[str, Any], messages: Sequence[Message]) -> str:
    payload = json.dumps(serialize_key(metadata, messages), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return sha256(payload.encode("utf-8")).hexdigest()


# --------------------------------------------------------------------------- #
# Implementations
# --------------------------------------------------------------------------- #

class MemoryCache:
    """Process-local dict cache."""

    def __init__(self):
        self._entries: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[List[Message]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return [Message.model_validate(m) for m in entry["messages"]]

    async def set(self, key: str, value: List[Message], metadata: Dict[str, Any]) -> None:
        self._entries[key] = {
            "messages": [m.dump() for m in value],
            "metadata": metadata,
        }


class FileCache:
    """One JSON file per key under *root*: ``{"messages": [...], "metadata": {...}}``."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _file(self, key: str) -> anyio.Path:
        return anyio.Path(self.root / f"{key}.json")

    async def get(self, key: str) -> Optional[List[Message]]:
        f = self._file(key)
        if not await f.exists():
            return None
        data = json.loads(await f.read_text(encoding="utf-8"))
        return [Message.model_validate(m) for m in data["messages"]]

    async def set(self, key: str, value: List[Message], metadata: Dict[str, Any]) -> None:
        f = self._file(key)
        # one temp file per write; the last replace wins
        tmp = anyio.Path(self.root / f"{key}.{uuid4().hex}.tmp")
        payload = {"messages": [m.dump() for m in value], "metadata": metadata}
        await tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        await tmp.replace(f)
