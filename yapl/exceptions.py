from __future__ import annotations

"""Exception hierarchy for yapl.

Errors fall in three families:

* :class:`SchemaValidationError` – raised while loading a document, before any
  provider is called.
* :class:`ConfigurationError` – raised when an ``output`` cannot be resolved to
  a provider / model / tool set.
* Runtime failures while an ``output`` runs (:class:`UnknownToolError`,
  :class:`ToolRoundLimitError`, :class:`EmptyResponseError`).

Every message is prefixed with the document path so errors from several loaded
programs stay distinguishable.
"""

__all__ = [
    "YaplError",
    "SchemaValidationError",
    "InvalidDocumentError",
    "CircularDependencyError",
    "UndeclaredDependencyError",
    "DuplicateOutputError",
    "MisplacedDefaultOutputError",
    "ReservedInputNameError",
    "ConfigurationError",
    "ProviderNotFoundError",
    "NoProviderConfiguredError",
    "NoModelConfiguredError",
    "ToolNotFoundError",
    "UnknownToolError",
    "ToolRoundLimitError",
    "EmptyResponseError",
    "TemplateRenderError",
]


class YaplError(Exception):
    """Base class for every error raised by yapl."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


# --------------------------------------------------------------------------- #
# Load-time validation
# --------------------------------------------------------------------------- #


class SchemaValidationError(YaplError, ValueError):
    """A document failed static validation."""


class InvalidDocumentError(SchemaValidationError):
    """The YAML text is malformed or does not match the document shape."""


class CircularDependencyError(SchemaValidationError):
    def __init__(self, path: str, chain: str):
        self.chain = chain
        super().__init__(path, f'Circular dependency detected involving "{chain}".')


class UndeclaredDependencyError(SchemaValidationError):
    def __init__(self, path: str, chain: str, dependent: str):
        self.chain = chain
        self.dependent = dependent
        super().__init__(
            path,
            f'Chain "{chain}" is not declared but is listed as a dependency of "{dependent}".',
        )


class DuplicateOutputError(SchemaValidationError):
    def __init__(self, path: str, chain: str, output_id: str):
        self.chain = chain
        self.output_id = output_id
        super().__init__(path, f'Chain "{chain}" has duplicate output name "{output_id}".')


class MisplacedDefaultOutputError(SchemaValidationError):
    def __init__(self, path: str, chain: str, output_id: str):
        self.chain = chain
        self.output_id = output_id
        super().__init__(path, f'Chain "{chain}": the {output_id} output must be the last output.')


class ReservedInputNameError(SchemaValidationError):
    def __init__(self, path: str, name: str):
        self.name = name
        super().__init__(path, f"The '{name}' input is reserved for internal use.")


# --------------------------------------------------------------------------- #
# Call configuration
# --------------------------------------------------------------------------- #


class ConfigurationError(YaplError):
    """An output could not be resolved to a usable provider/model/tool set."""


class ProviderNotFoundError(ConfigurationError):
    def __init__(self, path: str, provider: str):
        self.provider = provider
        super().__init__(path, f"Provider {provider} not found")


class NoProviderConfiguredError(ConfigurationError):
    def __init__(self, path: str):
        super().__init__(
            path,
            "No provider found: provider must be set on the document, the output, "
            "or as a default of the Yapl engine",
        )


class NoModelConfiguredError(ConfigurationError):
    def __init__(self, path: str):
        super().__init__(
            path,
            "No model found: model must be set on the document, the output, "
            "or as a default of the Yapl engine",
        )


class ToolNotFoundError(ConfigurationError):
    def __init__(self, path: str, tool: str):
        self.tool = tool
        super().__init__(path, f"Tool {tool} not found in Yapl tools")


# --------------------------------------------------------------------------- #
# Tool-call loop
# --------------------------------------------------------------------------- #


class UnknownToolError(YaplError):
    """The model called a tool that is not part of the output's tool set."""

    def __init__(self, path: str, tool: str):
        self.tool = tool
        super().__init__(path, f"Tool {tool} not specified, but was called by LLM")


class ToolRoundLimitError(YaplError):
    def __init__(self, path: str, limit: int):
        self.limit = limit
        super().__init__(path, f"Model kept requesting tools after {limit} round(s)")


class EmptyResponseError(YaplError):
    """An ``output`` finished without any message to record."""

    def __init__(self, path: str, chain: str, output_id: str | None):
        self.chain = chain
        self.output_id = output_id
        label = f'output "{output_id}"' if output_id else "an unnamed output"
        super().__init__(path, f'Chain "{chain}": {label} produced no message.')


class TemplateRenderError(YaplError):
    """A message or format template failed to render."""
