# This file makes the 'engine' directory a Python package.

"""Engine sub-package public interface."""

from .provider import Provider, ProviderRequest  # noqa: F401 – re-export
from .http_client import OpenAIProvider, OpenRouterProvider  # noqa: F401
from .registry import (  # noqa: F401
    ProviderConfig,
    provider_config,
    build_provider,
    load_providers_from_yaml,
)
