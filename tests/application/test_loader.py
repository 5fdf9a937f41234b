"""Tests for the loader facade."""

from __future__ import annotations

import asyncio
import logging
import os.path
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from jitmod import create_loader
from jitmod.application import EVAL_FILENAME, Loader
from jitmod.config.options import LoaderOptions
from jitmod.shared.errors import AsyncModuleError, ResolutionError
from jitmod.shared.models import TransformOptions

WriteFile = Callable[[str, str], Path]
MakeLoader = Callable[..., Loader]


class TestResolve:
    """``resolve`` maps specifiers to files without executing anything."""

    def test_relative_to_base_directory(self, write_file: WriteFile, make_loader: MakeLoader) -> None:
        path = write_file("lib/tool.pym", "export X = 1\n")
        loader = make_loader()

        assert loader.resolve("./lib/tool") == path
        assert len(loader.registry) == 0

    def test_relative_to_explicit_directory(self, write_file: WriteFile, make_loader: MakeLoader) -> None:
        path = write_file("lib/tool.py", "")

        assert make_loader().resolve("./tool", path.parent) == path

    def test_alias_option(self, write_file: WriteFile, make_loader: MakeLoader, tmp_path: Path) -> None:
        path = write_file("src/deep/widget.py", "")
        loader = make_loader(alias={"~": str(tmp_path / "src")})

        assert loader.resolve("~/deep/widget") == path

    def test_missing_module(self, make_loader: MakeLoader, tmp_path: Path) -> None:
        with pytest.raises(ResolutionError, match=r"Cannot find module '\./nowhere'"):
            _ = make_loader().require("./nowhere")


class TestRequire:
    """``require`` goes through resolution, policy and execution."""

    def test_loader_is_callable(self, write_file: WriteFile, make_loader: MakeLoader) -> None:
        _ = write_file("util.pym", "export def double(x):\n    return x * 2\n")
        loader = make_loader()

        assert loader("./util").double(4) == 8

    def test_stdlib_bypasses_resolution(self, make_loader: MakeLoader) -> None:
        loader = make_loader()

        assert loader.require("os.path") is os.path
        assert len(loader.registry) == 0

    def test_loaders_do_not_share_modules(self, write_file: WriteFile, make_loader: MakeLoader) -> None:
        _ = write_file("shared.py", "value = object()\n")

        first = make_loader().require("./shared")
        second = make_loader().require("./shared")

        assert first is not second

    def test_debug_events_are_logged(
        self, write_file: WriteFile, make_loader: MakeLoader, caplog: pytest.LogCaptureFixture
    ) -> None:
        _ = write_file("logged.pym", "export X = 1\n")

        with caplog.at_level(logging.DEBUG, logger="jitmod"):
            _ = make_loader().require("./logged")

        events = [getattr(record, "loader_event", None) for record in caplog.records]
        assert "resolve" in events
        assert "transform" in events
        assert "execute" in events


class TestEntryPoints:
    """``run_main`` and ``eval_module`` run code outside the normal require flow."""

    def test_run_main_sets_main_name(self, write_file: WriteFile, make_loader: MakeLoader) -> None:
        _ = write_file("script.py", "name = __name__\nis_main = require.main\n")

        module = make_loader().run_main("./script")

        assert module.name == "__main__"
        assert module.is_main is True

    def test_run_main_async(self, write_file: WriteFile, make_loader: MakeLoader) -> None:
        _ = write_file(
            "service.py",
            """
            import asyncio
            await asyncio.sleep(0)
            name = __name__
            """,
        )

        module = asyncio.run(make_loader().run_main_async("./service"))

        assert module.name == "__main__"

    def test_eval_module_is_not_registered(self, make_loader: MakeLoader) -> None:
        loader = make_loader()

        first = loader.eval_module("value = 1 + 1\n")
        second = loader.eval_module("value = 1 + 1\n")

        assert first.value == 2
        assert first is not second
        assert len(loader.registry) == 0

    def test_eval_module_resolves_against_base_directory(
        self, write_file: WriteFile, make_loader: MakeLoader, tmp_path: Path
    ) -> None:
        _ = write_file("dep.py", "value = 21\n")

        module = make_loader().eval_module(
            'import {value} from "./dep"\nexport DOUBLE = value * 2\nwhere = __filename__\n'
        )

        assert module.DOUBLE == 42
        assert module.where == str(tmp_path / EVAL_FILENAME)

    def test_eval_module_with_filename(self, make_loader: MakeLoader, tmp_path: Path) -> None:
        module = make_loader().eval_module("where = __dirname__\n", filename="nested/virtual.py")

        assert module.where == str(tmp_path / "nested")

    def test_eval_module_top_level_await(self, make_loader: MakeLoader) -> None:
        source = "import asyncio\nawait asyncio.sleep(0)\nresult = 5\n"
        loader = make_loader()

        with pytest.raises(AsyncModuleError):
            _ = loader.eval_module(source)

        assert loader.eval_module(source, is_async=True).result == 5
        assert asyncio.run(loader.eval_module_async(source)).result == 5


class TestTransformAndLifecycle:
    """The standalone transform and loader lifecycle."""

    def test_transform_returns_generated_code(self, make_loader: MakeLoader) -> None:
        code = make_loader().transform(TransformOptions(source="export default 1\n", filename="/virtual.pym"))

        assert code.startswith("default = 1\n")

    def test_close_forgets_modules_and_hooks(self, write_file: WriteFile, make_loader: MakeLoader) -> None:
        _ = write_file("closing.py", "x = 1\n")
        loader = make_loader()
        _ = loader.require("./closing")
        _ = loader.register()
        hooks_before = len(sys.meta_path)

        loader.close()

        assert len(loader.registry) == 0
        assert len(sys.meta_path) == hooks_before - 1

    def test_context_manager_closes(self, write_file: WriteFile, tmp_path: Path, cache_root: Path) -> None:
        _ = write_file("ctx.py", "x = 1\n")

        with Loader(LoaderOptions(cache_dir=cache_root), base_directory=tmp_path) as loader:
            _ = loader.require("./ctx")
            assert len(loader.registry) == 1
            assert "modules=1" in repr(loader)

        assert len(loader.registry) == 0


class TestCreateLoader:
    """``create_loader`` reads project configuration."""

    def test_base_directory_from_file(self, write_file: WriteFile, cache_root: Path, tmp_path: Path) -> None:
        script = write_file("app/main.py", "")

        loader = create_loader(script, cache_dir=cache_root)

        assert loader.base_directory == tmp_path / "app"
        loader.close()

    def test_project_configuration_and_overrides(
        self, write_file: WriteFile, cache_root: Path, tmp_path: Path
    ) -> None:
        _ = write_file(
            "pyproject.toml",
            """
            [tool.jitmod]
            require-cache = false
            native-modules = ["legacy"]
            """,
        )
        _ = write_file("app/main.py", "")

        loader = create_loader(
            tmp_path / "app",
            cache_dir=cache_root,
            interop_default=True,
            env={"JITMOD_SOURCE_MAPS": "off"},
        )

        assert loader.project_root == tmp_path
        assert loader.base_directory == tmp_path / "app"
        assert loader.options.require_cache is False
        assert loader.options.native_modules == ("legacy",)
        assert loader.options.interop_default is True
        assert loader.options.source_maps is False
        loader.close()
