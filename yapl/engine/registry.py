from __future__ import annotations

"""Provider configuration: build providers from keyword args or YAML.

Example ``providers.yml``::

    - name: openai
      backend: openai
    - name: fast
      backend: openrouter
      api_key: sk-or-...
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Type

import yaml

from yapl.engine.http_client import DEFAULT_TIMEOUT, OpenAIProvider, OpenRouterProvider
from yapl.engine.provider import Provider

# Public exports for `import *`
__all__ = [
    "BACKENDS",
    "ProviderConfig",
    "provider_config",
    "build_provider",
    "load_providers_from_yaml",
]

BACKENDS: Dict[str, Type[OpenAIProvider]] = {
    "openai": OpenAIProvider,
    "openrouter": OpenRouterProvider,
}


@dataclass
class ProviderConfig:  # noqa: D101 – self-documenting via fields
    name: str
    backend: str = "openai"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    def build(self) -> Provider:
        """Instantiate the provider for this configuration."""
        cls = BACKENDS.get(self.backend)
        if cls is None:
            raise ValueError(
                f"Unsupported backend '{self.backend}' for provider '{self.name}'. "
                f"Known backends: {', '.join(sorted(BACKENDS))}."
            )
        return cls(self.name, self.api_key, self.base_url, timeout=self.timeout)


def provider_config(name: str, **kwargs) -> ProviderConfig:  # noqa: D401 – simple factory
    """Return a :class:`ProviderConfig`.

    ``endpoint`` is accepted as an alias of ``base_url``.  Any other key that is
    not a field raises :class:`ValueError`.
    """
    if "endpoint" in kwargs and "base_url" not in kwargs:
        kwargs["base_url"] = kwargs.pop("endpoint")
    unknown = sorted(set(kwargs) - set(ProviderConfig.__dataclass_fields__))
    if unknown:
        raise ValueError(
            f"Unknown option(s) {', '.join(unknown)} for provider '{name}'. "
            f"Known options: backend, api_key, base_url (or endpoint), timeout."
        )
    return ProviderConfig(name=name, **kwargs)


def build_provider(name: str, **kwargs) -> Provider:
    return provider_config(name, **kwargs).build()


def load_providers_from_yaml(path: str | Path) -> List[Provider]:
    """Build every provider listed in the YAML file at *path*."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or []
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of provider definitions")
    return [build_provider(**item) for item in data]
