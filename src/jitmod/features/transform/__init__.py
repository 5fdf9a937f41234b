# Path: `src/jitmod/features/transform/__init__.py`
# Summary: Export syntax detection, interop helpers, the bundled transformer and the pipeline.
# Why: Provide a stable import surface for the executor, loader and tests.

from .domain.interop import (
    SCOPE_HELPERS,
    InteropModule,
    default_of,
    interop_default,
    pick,
    star,
)
from .domain.syntax import detect_syntax, has_dialect_syntax, needs_transform
from .usecases.esm_transformer import DialectSyntaxError, esm_transform
from .usecases.pipeline import INTEROP_FOOTER, TransformPipeline
from .usecases.ports import CacheStorePort, Transformer

__all__ = [
    "CacheStorePort",
    "DialectSyntaxError",
    "INTEROP_FOOTER",
    "InteropModule",
    "SCOPE_HELPERS",
    "TransformPipeline",
    "Transformer",
    "default_of",
    "detect_syntax",
    "esm_transform",
    "has_dialect_syntax",
    "interop_default",
    "needs_transform",
    "pick",
    "star",
]
