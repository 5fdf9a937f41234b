"""
Summary: sys.meta_path finder that sends host imports of dialect files through a loader.
Why: Let plain ``import name`` statements reach ``.pym`` modules the interpreter cannot read itself.
"""

from __future__ import annotations

import importlib
import importlib.abc
import importlib.machinery
import importlib.util
import sys
from collections.abc import Callable, Sequence
from importlib.machinery import ModuleSpec
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, final

from typing_extensions import override

from jitmod.platform.logging import logger

if TYPE_CHECKING:
    from .loader import Loader

# File types the interpreter already imports on its own.
_HOST_EXTENSIONS = frozenset({*importlib.machinery.all_suffixes(), ".json"})


def hook_extensions(extensions: Sequence[str]) -> tuple[str, ...]:
    """Return the configured extensions the host import system cannot handle."""

    return tuple(extension for extension in extensions if extension not in _HOST_EXTENSIONS)


@final
class JitSourceLoader(importlib.abc.Loader):
    """Import-system loader running one dialect file through a ``Loader``."""

    def __init__(self, loader: Loader, path: Path) -> None:
        self._loader = loader
        self._path = path

    @override
    def create_module(self, spec: ModuleSpec) -> ModuleType | None:
        return None

    @override
    def exec_module(self, module: ModuleType) -> None:
        record = self._loader.execute_into(module, self._path)
        if record.exports is not module:
            # The import system returns whatever sys.modules holds after exec.
            sys.modules[module.__name__] = record.exports


@final
class JitFinder(importlib.abc.MetaPathFinder):
    """Locate ``<name><ext>`` or ``<name>/__init__<ext>`` for the hooked extensions."""

    def __init__(self, loader: Loader, extensions: Sequence[str]) -> None:
        self._loader = loader
        self._extensions = tuple(extensions)

    @property
    def extensions(self) -> tuple[str, ...]:
        return self._extensions

    @override
    def find_spec(
        self,
        fullname: str,
        path: Sequence[str] | None,
        target: ModuleType | None = None,
    ) -> ModuleSpec | None:
        name = fullname.rpartition(".")[2]
        for entry in path if path is not None else sys.path:
            directory = Path(entry or ".")
            if not directory.is_dir():
                continue
            for extension in self._extensions:
                candidate = directory / f"{name}{extension}"
                if candidate.is_file():
                    return self._spec(fullname, candidate.resolve(), package=False)
                package_entry = directory / name / f"__init__{extension}"
                if package_entry.is_file():
                    return self._spec(fullname, package_entry.resolve(), package=True)
        return None

    def _spec(self, fullname: str, path: Path, *, package: bool) -> ModuleSpec | None:
        return importlib.util.spec_from_file_location(
            fullname,
            path,
            loader=JitSourceLoader(self._loader, path),
            submodule_search_locations=[str(path.parent)] if package else None,
        )


def install_hook(loader: Loader, extensions: Sequence[str]) -> Callable[[], None]:
    """Insert a ``JitFinder`` at the front of ``sys.meta_path``.

    Returns:
        Callable[[], None]: Idempotent handle that removes the finder again.
    """
    finder = JitFinder(loader, extensions)
    sys.meta_path.insert(0, finder)
    importlib.invalidate_caches()
    logger.debug(
        "Installed import hook for %s",
        ", ".join(finder.extensions) or "no extensions",
        extra={"loader_event": "hook.install", "reason": ",".join(finder.extensions)},
    )

    def unregister() -> None:
        if finder not in sys.meta_path:
            return
        sys.meta_path.remove(finder)
        importlib.invalidate_caches()
        logger.debug("Removed import hook", extra={"loader_event": "hook.remove"})

    return unregister


__all__ = ["JitFinder", "JitSourceLoader", "hook_extensions", "install_hook"]
