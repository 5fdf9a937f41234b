"""Ports for transform use cases.

Where: features/transform/usecases.
What: Protocols for the cache store and the transformer callable used by the pipeline.
Why: Decouple the pipeline from the concrete cache store so tests can swap it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from jitmod.shared.models import CacheEntry, TransformOptions, TransformResult

Transformer = Callable[[TransformOptions], TransformResult]


@runtime_checkable
class CacheStorePort(Protocol):
    """Port for fingerprint-keyed transform artifact storage."""

    @property
    def enabled(self) -> bool:
        """Whether lookups can hit at all."""
        ...

    def lookup(self, key: str) -> CacheEntry | None:
        """Return the entry stored under ``key`` or ``None``."""
        ...

    def store(self, key: str, entry: CacheEntry) -> bool:
        """Persist ``entry`` under ``key``."""
        ...

    async def lookup_async(self, key: str) -> CacheEntry | None:
        """Awaitable variant of ``lookup``."""
        ...

    async def store_async(self, key: str, entry: CacheEntry) -> bool:
        """Awaitable variant of ``store``."""
        ...


__all__ = ["CacheStorePort", "Transformer"]
