"""Just-in-time module loader.

``jitmod`` resolves module specifiers to files, rewrites module-dialect
syntax on demand, caches the generated code on disk and executes the result
in a per-loader registry::

    from jitmod import create_loader

    loader = create_loader(__file__)
    util = loader.require("./util")
"""

from jitmod.application import Loader, create_loader
from jitmod.config import LoaderOptions, load_options
from jitmod.features.transform import esm_transform, interop_default
from jitmod.shared import (
    AsyncModuleError,
    ConfigError,
    ExecutionError,
    LoaderError,
    ResolutionError,
    TransformError,
    TransformOptions,
    TransformResult,
)

__version__ = "0.1.0"

__all__ = [
    "AsyncModuleError",
    "ConfigError",
    "ExecutionError",
    "Loader",
    "LoaderError",
    "LoaderOptions",
    "ResolutionError",
    "TransformError",
    "TransformOptions",
    "TransformResult",
    "__version__",
    "create_loader",
    "esm_transform",
    "interop_default",
    "load_options",
]
