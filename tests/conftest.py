"""Shared pytest fixtures for loader tests."""

from __future__ import annotations

import os
import sys
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from jitmod.application import Loader
from jitmod.config.options import LoaderOptions
from jitmod.features.transform import Transformer

WriteFile = Callable[[str, str], Path]
MakeLoader = Callable[..., Loader]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Hide JITMOD_* variables of the developer shell and restore sys.meta_path."""

    for name in list(os.environ):
        if name.startswith("JITMOD_"):
            monkeypatch.delenv(name)
    meta_path = list(sys.meta_path)
    try:
        yield None
    finally:
        sys.meta_path[:] = meta_path


@pytest.fixture
def write_file(tmp_path: Path) -> WriteFile:
    """Write dedented ``content`` to ``tmp_path / relative`` and return the path."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """Cache directory kept apart from the module files under test."""

    return tmp_path / ".jitcache"


@pytest.fixture
def make_loader(tmp_path: Path, cache_root: Path) -> Iterator[MakeLoader]:
    """Build loaders rooted at ``tmp_path`` and close them after the test."""

    loaders: list[Loader] = []

    def _make(*, transformer: Transformer | None = None, **changes: Any) -> Loader:
        options = LoaderOptions(cache_dir=cache_root).replace(**changes)
        loader = Loader(
            options,
            base_directory=tmp_path,
            transformer=transformer,
            project_root=tmp_path,
        )
        loaders.append(loader)
        return loader

    yield _make

    for loader in loaders:
        loader.close()
