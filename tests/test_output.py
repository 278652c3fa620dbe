import pytest

from fakes import STEP_COST, FakeProvider, LoopingProvider, tool_call_message
from yapl.core.config import ResolvedConfig
from yapl.core.output import execute_output, run_tool_call
from yapl.core.types import Cost, Message, Model, OutputFormat
from yapl.exceptions import ToolRoundLimitError, UnknownToolError
from yapl.io.cache import MemoryCache
from yapl.utils.events import CacheHit, ToolCalled, subscribe

pytestmark = pytest.mark.anyio

history = [Message(role="user", content="what is 1 + 2?")]


def _config(provider, *tools):
    return ResolvedConfig(provider=provider, model=Model(name="m"), tools=list(tools))


async def test_plain_reply():
    provider = FakeProvider(replies=["three"])
    messages, cost = await execute_output(history, _config(provider))
    assert [m.content for m in messages] == ["what is 1 + 2?", "three"]
    assert cost == STEP_COST
    assert provider.requests[0].messages == tuple(history)


async def test_tool_loop_runs_until_no_calls(add_tool):
    provider = FakeProvider(replies=[tool_call_message("add", '{"a": 1, "b": 2}'), "It is 3."])
    messages, cost = await execute_output(history, _config(provider, add_tool))

    assert [m.role for m in messages] == ["user", "assistant", "tool", "assistant"]
    assert messages[2] == Message(role="tool", content="3", tool_call_id="call_1")
    assert messages[-1].content == "It is 3."
    assert provider.calls == 2
    assert provider.requests[1].messages[-1].role == "tool"
    assert provider.requests[0].tools == (add_tool,)
    assert cost == STEP_COST + STEP_COST


async def test_unknown_tool_is_fatal(add_tool):
    provider = FakeProvider(replies=[tool_call_message("nope")])
    with pytest.raises(UnknownToolError) as exc:
        await execute_output(history, _config(provider, add_tool), path="doc.yml")
    assert str(exc.value) == "doc.yml: Tool nope not specified, but was called by LLM"


async def test_invalid_json_arguments_fed_back(add_tool):
    provider = FakeProvider(replies=[tool_call_message("add", "{not json"), "sorry"])
    messages, _ = await execute_output(history, _config(provider, add_tool))
    assert messages[2].role == "tool"
    assert messages[2].content.startswith("Error: Tool call add arguments failed to parse")
    assert messages[-1].content == "sorry"


async def test_schema_violation_fed_back(add_tool):
    seen = []
    subscribe(ToolCalled)(seen.append)

    provider = FakeProvider(replies=[tool_call_message("add", '{"a": "one"}'), "retry"])
    messages, _ = await execute_output(history, _config(provider, add_tool))
    assert messages[2].content.startswith("Error: Tool call add arguments failed to validate")
    assert [e.ok for e in seen] == [False]


async def test_invalid_argument_schema_fed_back():
    from yapl.core.tool import Tool

    broken = Tool(lambda: "never", name="broken", arguments={"type": "notatype"})
    provider = FakeProvider(replies=[tool_call_message("broken"), "gave up"])
    messages, _ = await execute_output(history, _config(provider, broken))

    assert messages[2].role == "tool"
    assert messages[2].content.startswith("Error: Tool call broken has an invalid argument schema")
    assert messages[-1].content == "gave up"


async def test_tool_exception_fed_back(boom_tool):
    msg = await run_tool_call(tool_call_message("boom").tool_calls[0], [boom_tool])
    assert msg.role == "tool"
    assert msg.tool_call_id == "call_1"
    assert msg.content == "Error: Tool call boom failed: kaboom"


async def test_async_tool():
    from yapl.core.tool import Tool

    async def shout(text: str) -> str:
        return text.upper()

    t = Tool(shout, arguments={"type": "object", "properties": {"text": {"type": "string"}}})
    msg = await run_tool_call(tool_call_message("shout", '{"text": "hi"}').tool_calls[0], [t])
    assert msg.content == "HI"


async def test_tool_round_limit(add_tool):
    provider = LoopingProvider()
    with pytest.raises(ToolRoundLimitError):
        await execute_output(history, _config(provider, add_tool), max_tool_rounds=2)
    assert provider.calls == 3


async def test_cache_hit_skips_provider():
    cache = MemoryCache()
    hits = []
    subscribe(CacheHit)(hits.append)

    provider = FakeProvider(replies=["first"])
    first, cost1 = await execute_output(history, _config(provider), cache=cache)
    second, cost2 = await execute_output(history, _config(provider), cache=cache)

    assert provider.calls == 1
    assert first == second
    assert cost1 == STEP_COST
    assert cost2 == Cost()
    assert len(cache) == 1
    assert len(hits) == 1


async def test_cache_key_depends_on_format():
    cache = MemoryCache()
    provider = FakeProvider(replies=["a", "b"])
    await execute_output(history, _config(provider), cache=cache)
    await execute_output(history, _config(provider), OutputFormat(json=True), cache=cache)
    assert provider.calls == 2
    assert len(cache) == 2


async def test_cache_stores_tool_round_trip(add_tool):
    cache = MemoryCache()
    provider = FakeProvider(replies=[tool_call_message("add", '{"a": 2, "b": 2}'), "four"])
    first, _ = await execute_output(history, _config(provider, add_tool), cache=cache)
    second, _ = await execute_output(history, _config(provider, add_tool), cache=cache)
    assert provider.calls == 2
    assert second == first
    assert second[2].content == "4"
