import pytest

from yapl.core.tool import Tool
import yapl.utils.events as ev


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_event_bus():
    saved = {k: list(v) for k, v in ev._REGISTRY.items()}
    yield
    ev._REGISTRY.clear()
    ev._REGISTRY.update(saved)


def _add(a: int, b: int) -> int:
    """Add two integers."""
    return a + b


def _boom() -> str:
    """Always fails."""
    raise RuntimeError("kaboom")


@pytest.fixture
def add_tool() -> Tool:
    return Tool(
        _add,
        name="add",
        arguments={
            "type": "object",
            "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
            "required": ["a", "b"],
        },
    )


@pytest.fixture
def boom_tool() -> Tool:
    return Tool(_boom, name="boom")
