"""
Summary: Exception hierarchy raised by the loading engine.
Why: Let callers tell resolution, transform and execution failures apart.
"""

from __future__ import annotations

from pathlib import Path


class LoaderError(Exception):
    """Base class for every error raised by the loader itself."""


class ConfigError(LoaderError):
    """Raised when loader configuration cannot be parsed or validated."""


class ResolutionError(LoaderError):
    """Raised when a specifier cannot be mapped to an existing file."""

    specifier: str
    from_directory: Path | None

    def __init__(self, specifier: str, from_directory: Path | None = None) -> None:
        self.specifier = specifier
        self.from_directory = from_directory
        location = f" from {from_directory}" if from_directory is not None else ""
        super().__init__(f"Cannot find module '{specifier}'{location}")


class TransformError(LoaderError):
    """Raised when the transformer reports a failure for a source file."""

    filename: str
    diagnostic: str

    def __init__(self, filename: str, diagnostic: str) -> None:
        self.filename = filename
        self.diagnostic = diagnostic
        super().__init__(f"Transform failed for {filename}: {diagnostic}")


class CacheIOError(LoaderError):
    """Raised internally when the cache directory cannot be read or written.

    The cache store recovers from this error by disabling itself, so it never
    reaches callers of the loader.
    """


class ExecutionError(LoaderError):
    """Raised when the engine cannot run a module it has prepared."""


class AsyncModuleError(ExecutionError):
    """Raised when a module using top-level await is requested synchronously."""

    filename: str

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(
            f"{filename} uses top-level await and must be loaded with import_module()"
        )


__all__ = [
    "AsyncModuleError",
    "CacheIOError",
    "ConfigError",
    "ExecutionError",
    "LoaderError",
    "ResolutionError",
    "TransformError",
]
