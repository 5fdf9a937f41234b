"""Where: src/jitmod/platform/host.py
What: Adapter around the interpreter's own import machinery.
Why: Native modules are handed to importlib untouched; the engine never reimplements it.
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import json
import sys
from types import ModuleType
from typing import Any, final

from jitmod.platform.logging import logger
from jitmod.shared.errors import ExecutionError
from jitmod.shared.models import ResolvedModule

_SYNTHETIC_PREFIX = "_jitmod_native_"


def is_host_module(specifier: str) -> bool:
    """Return True for builtin and standard-library module names."""

    top_level = specifier.split(".", 1)[0]
    if not top_level.isidentifier():
        return False
    return top_level in sys.builtin_module_names or top_level in sys.stdlib_module_names


def synthetic_module_name(resolved: ResolvedModule) -> str:
    """Stable ``sys.modules`` key for files loaded by path rather than by name."""

    digest = hashlib.sha1(resolved.key.encode("utf-8")).hexdigest()[:16]
    return f"{_SYNTHETIC_PREFIX}{resolved.absolute_path.stem}_{digest}"


@final
class ImportlibHostLoader:
    """Load modules exactly as the interpreter would."""

    def import_module(self, name: str) -> ModuleType:
        """Import ``name`` through ``sys.modules`` and ``sys.meta_path``."""

        return importlib.import_module(name)

    def load(self, resolved: ResolvedModule) -> Any:
        """Load a resolved native file and return its value."""

        if resolved.extension == ".json":
            with open(resolved.absolute_path, encoding="utf-8") as handle:
                return json.load(handle)

        if resolved.module_name:
            return importlib.import_module(resolved.module_name)

        name = synthetic_module_name(resolved)
        existing = sys.modules.get(name)
        if existing is not None:
            return existing

        spec = importlib.util.spec_from_file_location(name, resolved.absolute_path)
        if spec is None or spec.loader is None:
            raise ExecutionError(f"The host loader cannot load {resolved.absolute_path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            _ = sys.modules.pop(name, None)
            raise
        logger.debug("Host loaded %s as %s", resolved.absolute_path, name)
        return module


__all__ = ["ImportlibHostLoader", "is_host_module", "synthetic_module_name"]
