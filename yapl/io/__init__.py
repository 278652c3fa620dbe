"""Persistence helpers (response caches)."""

from .cache import Cache, FileCache, MemoryCache, hash_key  # noqa: F401
