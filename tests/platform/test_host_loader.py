"""Tests for the host import adapter."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from jitmod.platform.host import ImportlibHostLoader, is_host_module, synthetic_module_name
from jitmod.shared.models import ResolvedModule


@pytest.fixture
def host() -> Iterator[ImportlibHostLoader]:
    before = set(sys.modules)
    yield ImportlibHostLoader()
    for name in set(sys.modules) - before:
        if name.startswith("_jitmod_native_"):
            del sys.modules[name]


@pytest.mark.parametrize("name", ["os", "os.path", "json.decoder", "sys", "asyncio"])
def test_stdlib_names_are_host_modules(name: str) -> None:
    assert is_host_module(name) is True


@pytest.mark.parametrize("name", ["./os", "jitmod_unknown", "~/json", "@scope/pkg", ""])
def test_other_specifiers_are_not_host_modules(name: str) -> None:
    assert is_host_module(name) is False


def test_import_module_delegates_to_importlib(host: ImportlibHostLoader) -> None:
    assert host.import_module("json") is json


def test_load_json_file(host: ImportlibHostLoader, tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    _ = path.write_text('{"a": [1, 2]}', encoding="utf-8")

    assert host.load(ResolvedModule(absolute_path=path, extension=".json")) == {"a": [1, 2]}


def test_load_by_module_name(host: ImportlibHostLoader) -> None:
    resolved = ResolvedModule(
        absolute_path=Path(json.__file__), is_native=True, extension=".py", module_name="json"
    )

    assert host.load(resolved) is json


def test_load_file_by_path_is_cached(host: ImportlibHostLoader, tmp_path: Path) -> None:
    path = tmp_path / "native_helper.py"
    _ = path.write_text("import itertools\ncounter = itertools.count()\nfirst = next(counter)\n", encoding="utf-8")
    resolved = ResolvedModule(absolute_path=path, extension=".py")

    module = host.load(resolved)

    assert module.first == 0
    assert host.load(resolved) is module
    assert sys.modules[synthetic_module_name(resolved)] is module


def test_failed_host_load_is_not_cached(host: ImportlibHostLoader, tmp_path: Path) -> None:
    path = tmp_path / "native_broken.py"
    _ = path.write_text("raise ImportError('missing dependency')\n", encoding="utf-8")
    resolved = ResolvedModule(absolute_path=path, extension=".py")

    with pytest.raises(ImportError, match="missing dependency"):
        _ = host.load(resolved)

    assert synthetic_module_name(resolved) not in sys.modules


def test_synthetic_names_differ_per_path(tmp_path: Path) -> None:
    first = synthetic_module_name(ResolvedModule(absolute_path=tmp_path / "a" / "mod.py"))
    second = synthetic_module_name(ResolvedModule(absolute_path=tmp_path / "b" / "mod.py"))

    assert first != second
    assert first.startswith("_jitmod_native_mod_")
