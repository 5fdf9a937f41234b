"""
Summary: Classify resolved files as native, force-transform, or default.
Why: Dependencies the host already runs should skip the transform pipeline entirely.
"""

from __future__ import annotations

import importlib.machinery
from collections.abc import Sequence
from pathlib import Path, PurePath
from typing import Final, final

from jitmod.shared.models import Classification, ResolvedModule

# Suffixes only the host import machinery can execute.
HOST_ONLY_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {
        ".json",
        *importlib.machinery.BYTECODE_SUFFIXES,
        *importlib.machinery.EXTENSION_SUFFIXES,
    }
)


def _split_entry(entry: str) -> tuple[str, ...]:
    return tuple(part for part in entry.replace("\\", "/").split("/") if part)


@final
class PolicyMatcher:
    """Three-way transform policy for resolved modules.

    ``force-transform`` entries win over everything except host-only file
    types; ``native`` covers host-resolved modules, ``native_modules`` entries
    and anything below a dependency boundary such as ``site-packages``.
    """

    def __init__(
        self,
        *,
        native_modules: Sequence[str] = (),
        transform_modules: Sequence[str] = (),
        native_boundaries: Sequence[str] = ("site-packages", "dist-packages"),
    ) -> None:
        self._native_modules = tuple(native_modules)
        self._transform_modules = tuple(transform_modules)
        self._boundaries = frozenset(native_boundaries)

    def classify(self, resolved: ResolvedModule) -> Classification:
        extension = resolved.extension or resolved.absolute_path.suffix
        if extension in HOST_ONLY_EXTENSIONS:
            return Classification.NATIVE
        if self._matches_any(resolved, self._transform_modules):
            return Classification.FORCE_TRANSFORM
        if resolved.is_native or self._matches_any(resolved, self._native_modules):
            return Classification.NATIVE
        if self.under_boundary(resolved.absolute_path):
            return Classification.NATIVE
        return Classification.DEFAULT

    def under_boundary(self, path: PurePath) -> bool:
        """Return True when ``path`` lies inside a dependency directory."""

        return any(part in self._boundaries for part in path.parts[:-1])

    def _matches_any(self, resolved: ResolvedModule, entries: Sequence[str]) -> bool:
        return any(self._matches(resolved, entry) for entry in entries)

    def _matches(self, resolved: ResolvedModule, entry: str) -> bool:
        if not entry:
            return False

        entry_path = Path(entry)
        if entry_path.is_absolute():
            return resolved.absolute_path.is_relative_to(entry_path)

        if resolved.module_name is not None:
            top_level = resolved.module_name.split(".", 1)[0]
            if entry in {top_level, resolved.module_name}:
                return True

        entry_parts = _split_entry(entry)
        path = resolved.absolute_path
        parts = (*path.parts[:-1], path.stem)
        width = len(entry_parts)
        for index, part in enumerate(parts):
            if part in self._boundaries and parts[index + 1 : index + 1 + width] == entry_parts:
                return True
        return False


__all__ = ["HOST_ONLY_EXTENSIONS", "PolicyMatcher"]
