"""Shared path utilities for configuration and cache locations.

This module centralizes how the loader discovers the project it runs in
and where transform results are persisted.

Policy:
- Project root: nearest parent holding ``pyproject.toml`` or ``.git``.
- Cache: explicit directory, then ``<project_root>/.cache/jitmod``, then
  ``<tempdir>/jitmod``. The first directory that can be created and written wins.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Callable, Final

from jitmod.platform.logging import logger

CACHE_DIR_NAME: Final[str] = "jitmod"
_PROJECT_MARKERS: Final[tuple[str, ...]] = ("pyproject.toml", ".git")


def resolve_overridable_path(
    *,
    explicit_path: Path | str | None,
    env: Mapping[str, str] | None,
    env_var: str | None,
    default_factory: Callable[[], Path],
) -> Path:
    """Resolve a configuration path honoring explicit and environment overrides."""

    if explicit_path is not None:
        return Path(explicit_path).expanduser().resolve()

    mapping = env if env is not None else os.environ
    if env_var:
        candidate = mapping.get(env_var) or ""
        candidate = candidate.strip()
        if candidate:
            return Path(candidate).expanduser().resolve()

    default_path = default_factory()
    return default_path.expanduser().resolve()


def detect_project_root(start: Path | None = None) -> Path | None:
    """Detect the project root by walking up from ``start``.

    Args:
        start: Directory to start from. Defaults to the current working directory.

    Returns:
        Path | None: The first directory holding a project marker, or ``None``.
    """
    here = (start or Path.cwd()).resolve()
    for candidate in [here, *here.parents]:
        if any((candidate / marker).exists() for marker in _PROJECT_MARKERS):
            return candidate
    return None


def default_cache_directories(
    explicit: Path | None = None,
    *,
    project_root: Path | None = None,
) -> list[Path]:
    """List cache directory candidates in priority order."""

    candidates: list[Path] = []
    if explicit is not None:
        candidates.append(Path(explicit).expanduser().resolve())
    if project_root is not None:
        candidates.append((project_root / ".cache" / CACHE_DIR_NAME).resolve())
    candidates.append((Path(tempfile.gettempdir()) / CACHE_DIR_NAME).resolve())
    return candidates


def _is_usable_directory(directory: Path) -> bool:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.debug("Cache directory %s cannot be created: %s", directory, exc)
        return False
    return os.access(directory, os.W_OK | os.X_OK)


def resolve_cache_directory(
    explicit: Path | None = None,
    *,
    project_root: Path | None = None,
) -> Path | None:
    """Return the first usable cache directory, or ``None`` when caching must be disabled."""

    for candidate in default_cache_directories(explicit, project_root=project_root):
        if _is_usable_directory(candidate):
            return candidate
    logger.warning("No writable cache directory found; transform caching disabled")
    return None


__all__ = [
    "CACHE_DIR_NAME",
    "default_cache_directories",
    "detect_project_root",
    "resolve_cache_directory",
    "resolve_overridable_path",
]
