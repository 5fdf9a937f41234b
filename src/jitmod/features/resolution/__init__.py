# Path: `src/jitmod/features/resolution/__init__.py`
# Summary: Export specifier resolution symbols.
# Why: Provide a stable import surface for the loader and tests.

from .domain.alias import AliasTable
from .usecases.path_resolver import PathResolver

__all__ = ["AliasTable", "PathResolver"]
