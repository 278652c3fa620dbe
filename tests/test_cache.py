import json

import anyio
import pytest

from yapl.core.types import Message, Model, OutputFormat, ToolCall, ToolCallFunction
from yapl.io.cache import FileCache, MemoryCache, cache_metadata, hash_key

msgs = [Message(role="system", content="s"), Message(role="user", content="u")]
reply = [Message(role="assistant", content="r")]


def _meta(**kw):
    base = dict(provider="p", model=Model(name="m"), tools=[], format=None)
    base.update(kw)
    return cache_metadata(**base)


def test_hash_is_deterministic():
    assert hash_key(_meta(), msgs) == hash_key(_meta(), list(msgs))
    assert len(hash_key(_meta(), msgs)) == 64


def test_hash_changes_with_inputs(add_tool):
    base = hash_key(_meta(), msgs)
    assert hash_key(_meta(provider="q"), msgs) != base
    assert hash_key(_meta(model=Model(name="m", params={"temperature": 0})), msgs) != base
    assert hash_key(_meta(format=OutputFormat(json=True)), msgs) != base
    assert hash_key(_meta(tools=[add_tool]), msgs) != base
    assert hash_key(_meta(), msgs[:1]) != base


def test_hash_includes_tool_call_arguments():
    def _call(args):
        return Message(
            role="assistant",
            tool_calls=[ToolCall(id="x", function=ToolCallFunction(name="f", arguments=args))],
        )

    assert hash_key(_meta(), [_call("{}")]) != hash_key(_meta(), [_call('{"a": 1}')])


def test_tool_call_ids_do_not_affect_key():
    a = Message(role="assistant", tool_calls=[ToolCall(id="1", function=ToolCallFunction(name="f"))])
    b = Message(role="assistant", tool_calls=[ToolCall(id="2", function=ToolCallFunction(name="f"))])
    assert hash_key(_meta(), [a]) == hash_key(_meta(), [b])


def test_metadata_omits_executor(add_tool):
    meta = _meta(tools=[add_tool])
    assert meta["tools"][0]["function"]["name"] == "add"
    json.dumps(meta)  # serialisable


@pytest.mark.anyio
async def test_memory_cache():
    cache = MemoryCache()
    assert await cache.get("k") is None
    await cache.set("k", reply, _meta())
    assert await cache.get("k") == reply
    assert len(cache) == 1


@pytest.mark.anyio
async def test_file_cache_persists(tmp_path):
    cache = FileCache(tmp_path / "cache")
    assert await cache.get("k") is None
    await cache.set("k", reply, _meta())

    again = FileCache(tmp_path / "cache")
    assert await again.get("k") == reply

    stored = json.loads((tmp_path / "cache" / "k.json").read_text())
    assert stored["metadata"]["provider"] == "p"
    assert stored["messages"] == [{"role": "assistant", "content": "r"}]
    assert not list((tmp_path / "cache").glob("*.tmp"))


@pytest.mark.anyio
async def test_file_cache_concurrent_writes_same_key(tmp_path):
    cache = FileCache(tmp_path / "cache")
    async with anyio.create_task_group() as tg:
        for _ in range(8):
            tg.start_soon(cache.set, "k", reply, _meta())

    assert await cache.get("k") == reply
    assert [p.name for p in (tmp_path / "cache").iterdir()] == ["k.json"]
