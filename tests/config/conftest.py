"""Shared pytest fixtures for configuration-focused tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

WritePyproject = Callable[[str], Path]


@pytest.fixture
def portable_repo_root(tmp_path: Path) -> Path:
    """Provide a temporary repository root holding a minimal pyproject.toml."""

    root = tmp_path / "repo"
    root.mkdir()
    _ = (root / "pyproject.toml").write_text("[project]\nname='tmp'\n", encoding="utf-8")
    return root


@pytest.fixture
def write_pyproject(portable_repo_root: Path) -> WritePyproject:
    """Append a ``[tool.jitmod]`` body to the temporary pyproject.toml."""

    def _write(body: str) -> Path:
        path = portable_repo_root / "pyproject.toml"
        _ = path.write_text(
            "[project]\nname='tmp'\n\n[tool.jitmod]\n" + body,
            encoding="utf-8",
        )
        return path

    return _write
