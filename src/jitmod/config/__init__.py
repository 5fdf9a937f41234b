"""Configuration surface of the loader.

Where: config/__init__.py
What: Re-export loader options, the option loader and path helpers.
Why: Callers import configuration from one place.
"""

from __future__ import annotations

from .config import load_options, resolve_project_root
from .options import ENGINE_VERSION, LoaderOptions
from .paths import detect_project_root, resolve_cache_directory

__all__ = [
    "ENGINE_VERSION",
    "LoaderOptions",
    "detect_project_root",
    "load_options",
    "resolve_cache_directory",
    "resolve_project_root",
]
