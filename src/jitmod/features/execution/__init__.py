# Path: `src/jitmod/features/execution/__init__.py`
# Summary: Export the module executor, its registry and ports.
# Why: Let the loader facade compose execution without reaching into submodules.

from .executor import ModuleExecutor
from .ports import HostLoaderPort, ImporterPort
from .registry import ModuleRegistry
from .scope import ModuleRequire, populate_scope

__all__ = [
    "HostLoaderPort",
    "ImporterPort",
    "ModuleExecutor",
    "ModuleRegistry",
    "ModuleRequire",
    "populate_scope",
]
