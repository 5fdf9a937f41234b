"""Where: src/jitmod/platform/filesystem.py
What: Small filesystem helpers shared by the cache and the loader.
Why: Keep atomic write discipline in one place.
"""

from __future__ import annotations

import importlib.util
import os
import tempfile
from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """Create ``path`` (and parents) when missing and return it."""

    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write_text(path: Path, content: str) -> None:
    """Persist ``content`` so readers see either the old file, no file, or the new file.

    The content goes to a temporary file in the target directory, is flushed to
    disk, and is then renamed over ``path``.
    """

    _ = ensure_directory(path.parent)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            _ = handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise


def read_source(path: Path) -> str:
    """Read a Python source file, honoring encoding declarations and newline styles."""

    return importlib.util.decode_source(path.read_bytes())


__all__ = ["atomic_write_text", "ensure_directory", "read_source"]
