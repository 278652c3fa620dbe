"""In-process providers used across the test-suite."""

from typing import List, Optional, Sequence, Union

from yapl.core.types import Cost, Message, ToolCall, ToolCallFunction
from yapl.engine.provider import Provider, ProviderRequest

Reply = Union[str, Message]

STEP_COST = Cost(usd=0.001, tokens=10, ms=1.0)


class FakeProvider(Provider):
    """Replays *replies* in order, then echoes the last message content."""

    def __init__(self, name: str = "fake", replies: Optional[Sequence[Reply]] = None):
        super().__init__(name)
        self.replies: List[Reply] = list(replies or [])
        self.requests: List[ProviderRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def execute(self, request: ProviderRequest):
        self.requests.append(request)
        if self.replies:
            reply = self.replies.pop(0)
        else:
            last = request.messages[-1].content if request.messages else ""
            reply = f"echo: {last}"
        if isinstance(reply, str):
            reply = Message(role="assistant", content=reply)
        return [reply], STEP_COST


class LoopingProvider(FakeProvider):
    """Requests the same tool on every call."""

    def __init__(self, name: str = "fake", tool: str = "add", arguments: str = '{"a": 1, "b": 2}'):
        super().__init__(name)
        self.tool = tool
        self.arguments = arguments

    async def execute(self, request: ProviderRequest):
        self.requests.append(request)
        return [tool_call_message(self.tool, self.arguments, call_id=f"call_{self.calls}")], STEP_COST


def tool_call_message(name: str, arguments: str = "{}", call_id: str = "call_1") -> Message:
    return Message(
        role="assistant",
        content="",
        tool_calls=[ToolCall(id=call_id, function=ToolCallFunction(name=name, arguments=arguments))],
    )
