"""
Summary: Public surface of the loader facade and the import hook.
Why: Provide a stable import path for the package root, the CLI and tests.
"""

from .hooks import JitFinder, JitSourceLoader, hook_extensions, install_hook
from .loader import EVAL_FILENAME, Loader, create_loader

__all__ = [
    "EVAL_FILENAME",
    "JitFinder",
    "JitSourceLoader",
    "Loader",
    "create_loader",
    "hook_extensions",
    "install_hook",
]
