# Where: jitmod.shared.__init__
# What: Provide a concise import surface for shared errors and dataclasses.
# Why: Encourage consistent reuse of the engine contracts across features.

"""Shared value objects and exceptions exposed at the package level."""

from .errors import (
    AsyncModuleError,
    CacheIOError,
    ConfigError,
    ExecutionError,
    LoaderError,
    ResolutionError,
    TransformError,
)
from .models import (
    CacheEntry,
    Classification,
    ModuleRecord,
    ResolvedModule,
    ResolveRequest,
    SyntaxFlags,
    TransformExtras,
    TransformOptions,
    TransformResult,
)

__all__ = [
    "AsyncModuleError",
    "CacheEntry",
    "CacheIOError",
    "Classification",
    "ConfigError",
    "ExecutionError",
    "LoaderError",
    "ModuleRecord",
    "ResolutionError",
    "ResolveRequest",
    "ResolvedModule",
    "SyntaxFlags",
    "TransformError",
    "TransformExtras",
    "TransformOptions",
    "TransformResult",
]
