import pytest

from fakes import FakeProvider
from yapl.core.config import CallConfig, resolve_config
from yapl.core.types import Defaults, Model
from yapl.exceptions import (
    NoModelConfiguredError,
    NoProviderConfiguredError,
    ProviderNotFoundError,
    ToolNotFoundError,
)

providers = [FakeProvider("a"), FakeProvider("b")]


def test_output_level_wins():
    cfg = resolve_config(
        CallConfig(provider="b", model="m-out"),
        CallConfig(provider="a", model="m-chain"),
        providers=providers,
        tools=[],
    )
    assert cfg.provider.name == "b"
    assert cfg.model == Model(name="m-out")


def test_empty_values_fall_through():
    cfg = resolve_config(
        CallConfig(provider="", model=""),
        CallConfig(provider="a", model="m-chain"),
        providers=providers,
        tools=[],
    )
    assert cfg.provider.name == "a"
    assert cfg.model.name == "m-chain"


def test_fields_resolve_independently():
    cfg = resolve_config(
        CallConfig(model={"name": "m-out", "params": {"temperature": 0}}),
        CallConfig(),
        CallConfig.from_defaults(Defaults(provider="b", model="m-default")),
        providers=providers,
        tools=[],
    )
    assert cfg.provider.name == "b"
    assert cfg.model.name == "m-out"
    assert cfg.model.params == {"temperature": 0}


def test_missing_model_is_reported_first():
    with pytest.raises(NoModelConfiguredError) as exc:
        resolve_config(CallConfig(), CallConfig(), providers=providers, tools=[], path="doc.yml")
    assert str(exc.value).startswith("doc.yml: No model found")


def test_missing_provider():
    with pytest.raises(NoProviderConfiguredError):
        resolve_config(CallConfig(model="m"), providers=providers, tools=[])


def test_unknown_provider():
    with pytest.raises(ProviderNotFoundError) as exc:
        resolve_config(CallConfig(provider="nope", model="m"), providers=providers, tools=[])
    assert "Provider nope not found" in str(exc.value)


def test_tools_deduplicated_in_order(add_tool, boom_tool):
    cfg = resolve_config(
        CallConfig(provider="a", model="m", tools=["boom", "add", "boom"]),
        providers=providers,
        tools=[add_tool, boom_tool],
    )
    assert [t.name for t in cfg.tools] == ["boom", "add"]


def test_tools_from_first_non_empty_level(add_tool, boom_tool):
    cfg = resolve_config(
        CallConfig(provider="a", model="m", tools=[]),
        CallConfig(tools=["add"]),
        CallConfig(tools=["boom"]),
        providers=providers,
        tools=[add_tool, boom_tool],
    )
    assert [t.name for t in cfg.tools] == ["add"]


def test_unknown_tool(add_tool):
    with pytest.raises(ToolNotFoundError) as exc:
        resolve_config(CallConfig(provider="a", model="m", tools=["missing"]), providers=providers, tools=[add_tool])
    assert "Tool missing not found in Yapl tools" in str(exc.value)


def test_no_tools_is_empty_list():
    cfg = resolve_config(CallConfig(provider="a", model="m"), providers=providers, tools=[])
    assert cfg.tools == []
