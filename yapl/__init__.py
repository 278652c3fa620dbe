"""yapl: declarative LLM chains in YAML.

Main components:
* `Yapl`: engine holding providers, tools, defaults and the cache
* `Program`: a loaded document, awaited with inputs
* `Provider`: pluggable LLM backend (`OpenAIProvider`, `OpenRouterProvider`)
* `Tool` / `tool`: Python callables the model may call
"""

# Version info
__version__ = "0.1.0"

# Core components
from yapl.runtime import Yapl
from yapl.core.program import Program
from yapl.core.tool import Tool, tool
from yapl.core.types import (
    DEFAULT_CHAIN_ID,
    DEFAULT_OUTPUT_ID,
    CallResult,
    ChainResult,
    Cost,
    Defaults,
    Message,
    Model,
    OutputFormat,
    OutputRecord,
    ToolCall,
    ToolCallFunction,
)

# Providers
from yapl.engine.provider import Provider, ProviderRequest
from yapl.engine.http_client import OpenAIProvider, OpenRouterProvider
from yapl.engine.registry import load_providers_from_yaml

# Caches
from yapl.io.cache import FileCache, MemoryCache

from yapl.core.schema import document_json_schema
from yapl.exceptions import *  # noqa: F401,F403
from yapl.exceptions import __all__ as _exc_all

# Export all important symbols
__all__ = [
    "Yapl",
    "Program",
    "Tool",
    "tool",

    # Types
    "DEFAULT_CHAIN_ID",
    "DEFAULT_OUTPUT_ID",
    "CallResult",
    "ChainResult",
    "Cost",
    "Defaults",
    "Message",
    "Model",
    "OutputFormat",
    "OutputRecord",
    "ToolCall",
    "ToolCallFunction",

    # Providers
    "Provider",
    "ProviderRequest",
    "OpenAIProvider",
    "OpenRouterProvider",
    "load_providers_from_yaml",

    # Caches
    "FileCache",
    "MemoryCache",

    "document_json_schema",
    *_exc_all,
]
