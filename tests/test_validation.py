import textwrap

import pytest

from yapl.exceptions import (
    CircularDependencyError,
    DuplicateOutputError,
    MisplacedDefaultOutputError,
    ReservedInputNameError,
    SchemaValidationError,
    UndeclaredDependencyError,
)
from yapl.yaml_loader import parse_yaml


def _parse(text: str):
    return parse_yaml(textwrap.dedent(text), "doc.yml")


def test_valid_multi_chain():
    doc = _parse(
        """
        chains:
          facts:
            chain:
              messages: [{user: hi}, output]
          default:
            dependsOn: [facts]
            chain:
              messages: [{user: "{{ chains.facts.outputs.default.content }}"}]
        """
    )
    assert list(doc.chains) == ["facts", "default"]
    assert doc.chains["default"].depends_on == ["facts"]


def test_cycle_rejected_at_load():
    with pytest.raises(CircularDependencyError):
        _parse(
            """
            chains:
              a: {dependsOn: [b], chain: {messages: [output]}}
              b: {dependsOn: [a], chain: {messages: [output]}}
            """
        )


def test_undeclared_dependency_rejected():
    with pytest.raises(UndeclaredDependencyError) as exc:
        _parse(
            """
            chains:
              a: {dependsOn: [missing], chain: {messages: [output]}}
            """
        )
    assert 'Chain "missing" is not declared but is listed as a dependency of "a".' in str(exc.value)


def test_duplicate_output_id():
    with pytest.raises(DuplicateOutputError) as exc:
        _parse(
            """
            messages:
              - output: {id: x}
              - output: {id: x}
            """
        )
    assert exc.value.chain == "default"
    assert exc.value.output_id == "x"


def test_default_output_must_be_last():
    with pytest.raises(MisplacedDefaultOutputError):
        _parse(
            """
            messages:
              - output: {id: default}
              - user: more
            """
        )


def test_default_output_last_is_fine():
    _parse(
        """
        messages:
          - output: {id: first}
          - output: {id: default}
        """
    )


@pytest.mark.parametrize("name", ["outputs", "chains"])
def test_reserved_document_inputs(name):
    with pytest.raises(ReservedInputNameError) as exc:
        _parse(
            f"""
            inputs: [{name}]
            messages: [output]
            """
        )
    assert f"The '{name}' input is reserved for internal use." in str(exc.value)


def test_reserved_chain_inputs():
    with pytest.raises(ReservedInputNameError):
        _parse(
            """
            chains:
              default:
                chain:
                  inputs: [chains]
                  messages: [output]
            """
        )


def test_errors_are_schema_errors():
    assert issubclass(DuplicateOutputError, SchemaValidationError)
    assert issubclass(SchemaValidationError, ValueError)
