"""Tests for the CLI command implementations."""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path
from unittest.mock import Mock

import pytest

from jitmod.config import ENGINE_VERSION
from jitmod.features.cache import CacheStats, FileCacheStore, new_entry
from jitmod.ui.cli.args.options import CacheArgs, LoaderFlags, RunArgs, TransformArgs
from jitmod.ui.cli.commands import CacheCommand, RunCommand, TransformCommand
from jitmod.ui.cli.display import CacheDisplay, TransformDisplay


@pytest.fixture
def flags(tmp_path: Path) -> LoaderFlags:
    return LoaderFlags(cache_dir=tmp_path / "cache")


class TestRunCommand:
    """``run`` executes a script as ``__main__``."""

    def test_runs_script_with_arguments(self, tmp_path: Path, flags: LoaderFlags) -> None:
        script = tmp_path / "main.py"
        _ = script.write_text(
            "import sys\n"
            "from pathlib import Path\n"
            "Path(__dirname__, 'out.txt').write_text(__name__ + ' ' + ' '.join(sys.argv[1:]))\n",
            encoding="utf-8",
        )
        argv = list(sys.argv)

        result = RunCommand(RunArgs(command="run", script=script, script_args=["a", "b"], flags=flags)).execute()

        assert result == 0
        assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "__main__ a b"
        assert sys.argv == argv

    def test_top_level_await_runs_on_event_loop(self, tmp_path: Path, flags: LoaderFlags) -> None:
        script = tmp_path / "service.pym"
        _ = script.write_text(
            "import asyncio\n"
            "from pathlib import Path\n"
            "await asyncio.sleep(0)\n"
            "Path(__dirname__, 'done.txt').write_text(__name__)\n",
            encoding="utf-8",
        )

        _ = RunCommand(RunArgs(command="run", script=script, script_args=[], flags=flags)).execute()

        assert (tmp_path / "done.txt").read_text(encoding="utf-8") == "__main__"


class TestTransformCommand:
    """``transform`` prints generated code."""

    def test_shows_generated_code(self, tmp_path: Path, flags: LoaderFlags) -> None:
        source = tmp_path / "value.pym"
        _ = source.write_text("export default 1\n", encoding="utf-8")
        display = Mock(spec=TransformDisplay)

        code = TransformCommand(
            TransformArgs(command="transform", file=source, is_async=False, retain_lines=True, flags=flags),
            display=display,
        ).execute()

        assert code.startswith("default = 1\n")
        display.show_code.assert_called_once_with(source, code)

    def test_async_and_expanded_lines(self, tmp_path: Path, flags: LoaderFlags) -> None:
        source = tmp_path / "uses.pym"
        _ = source.write_text('import {a} from "./dep"\n', encoding="utf-8")

        code = TransformCommand(
            TransformArgs(command="transform", file=source, is_async=True, retain_lines=False, flags=flags),
            display=Mock(spec=TransformDisplay),
        ).execute()

        assert code.splitlines()[0] == "__jit_m0 = (await __jit_import__('./dep'))"
        assert len(code.splitlines()) == 3


class TestCacheCommand:
    """``cache`` reports and cleans the transform cache."""

    @pytest.fixture
    def seeded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FileCacheStore:
        monkeypatch.chdir(tmp_path)
        _ = (tmp_path / "pyproject.toml").write_text("[project]\nname = 'demo'\n", encoding="utf-8")
        store = FileCacheStore(tmp_path / "cache", engine_version=ENGINE_VERSION)
        for key in ("aa" + "0" * 62, "bb" + "1" * 62):
            _ = store.store(key, new_entry(key, "x = 1\n", None))
        return store

    def _run(self, action: str, flags: LoaderFlags, display: Mock, max_age_days: float = 30.0) -> int:
        args = CacheArgs(command="cache", action=action, max_age_days=max_age_days, flags=flags)  # type: ignore[arg-type]
        return CacheCommand(args, display=display).execute()

    def test_info(self, seeded: FileCacheStore, flags: LoaderFlags) -> None:
        display = Mock(spec=CacheDisplay)

        assert self._run("info", flags, display) == 0

        stats = display.show_stats.call_args.args[0]
        assert isinstance(stats, CacheStats)
        assert stats.entries == 2
        assert stats.directory == seeded.directory

    def test_clear(self, seeded: FileCacheStore, flags: LoaderFlags) -> None:
        display = Mock(spec=CacheDisplay)

        assert self._run("clear", flags, display) == 2

        display.show_removed.assert_called_once_with("clear", 2)
        assert seeded.stats().entries == 0

    def test_prune(self, seeded: FileCacheStore, flags: LoaderFlags) -> None:
        old = time.time() - 5 * 86400
        os.utime(seeded.path_for("aa" + "0" * 62), (old, old))
        display = Mock(spec=CacheDisplay)

        assert self._run("prune", flags, display, max_age_days=1) == 1

        display.show_removed.assert_called_once_with("prune", 1)
        assert seeded.stats().entries == 1

    def test_disabled_cache(self, seeded: FileCacheStore, tmp_path: Path) -> None:
        display = Mock(spec=CacheDisplay)

        assert self._run("clear", LoaderFlags(no_cache=True, cache_dir=tmp_path / "cache"), display) == 0

        display.show_disabled.assert_called_once()
        assert seeded.stats().entries == 2
