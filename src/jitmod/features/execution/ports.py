"""Ports for module execution.

Where: features/execution.
What: Protocols for the host loader and the loader callbacks injected into module scopes.
Why: Let tests replace the host loader and the loader callbacks with fakes.
"""

from __future__ import annotations

from pathlib import Path
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

from jitmod.shared.models import ModuleRecord, ResolvedModule


@runtime_checkable
class HostLoaderPort(Protocol):
    """Port for the interpreter's own module loading."""

    def import_module(self, name: str) -> ModuleType:
        """Import a module by dotted name."""
        ...

    def load(self, resolved: ResolvedModule) -> Any:
        """Load a file the engine classified as native."""
        ...


@runtime_checkable
class ImporterPort(Protocol):
    """Callbacks module code uses to load its own dependencies."""

    def resolve(self, specifier: str, from_directory: Path | None = None) -> Path:
        """Resolve ``specifier`` to an absolute path."""
        ...

    def require_for(self, record: ModuleRecord, specifier: str) -> Any:
        """Synchronously load ``specifier`` on behalf of ``record``."""
        ...

    async def import_for(self, record: ModuleRecord, specifier: str) -> Any:
        """Asynchronously load ``specifier`` on behalf of ``record``."""
        ...


__all__ = ["HostLoaderPort", "ImporterPort"]
