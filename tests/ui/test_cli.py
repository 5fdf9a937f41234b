"""Tests for CLI functionality."""

from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from jitmod.shared.errors import ResolutionError
from jitmod.ui.cli import CommandProcessor, main
from jitmod.ui.cli.args.options import CacheArgs, RunArgs, TransformArgs


@pytest.fixture
def script(tmp_path: Path) -> Path:
    path = tmp_path / "main.py"
    _ = path.write_text("x = 1\n", encoding="utf-8")
    return path


def test_run_dispatch(script: Path, mocker: MockerFixture) -> None:
    """The run subcommand builds RunArgs and executes RunCommand."""

    mock_command = mocker.patch("jitmod.ui.cli.cli.RunCommand")

    assert main(["run", str(script), "extra"]) == 0

    args = mock_command.call_args.args[0]
    assert isinstance(args, RunArgs)
    assert args.script_args == ["extra"]
    mock_command.return_value.execute.assert_called_once_with()


def test_transform_dispatch(script: Path, mocker: MockerFixture) -> None:
    mock_command = mocker.patch("jitmod.ui.cli.cli.TransformCommand")

    CommandProcessor.process_command(["transform", str(script), "--async"])

    args = mock_command.call_args.args[0]
    assert isinstance(args, TransformArgs)
    assert args.is_async is True


def test_cache_dispatch(mocker: MockerFixture) -> None:
    mock_command = mocker.patch("jitmod.ui.cli.cli.CacheCommand")

    CommandProcessor.process_command(["cache", "clear"])

    args = mock_command.call_args.args[0]
    assert isinstance(args, CacheArgs)
    assert args.action == "clear"


def test_loader_errors_exit_with_status_one(script: Path, mocker: MockerFixture) -> None:
    mock_command = mocker.patch("jitmod.ui.cli.cli.RunCommand")
    mock_command.return_value.execute.side_effect = ResolutionError("./missing")

    with pytest.raises(SystemExit) as excinfo:
        _ = main(["run", str(script)])

    assert excinfo.value.code == 1


def test_unexpected_errors_exit_with_status_one(script: Path, mocker: MockerFixture) -> None:
    mock_command = mocker.patch("jitmod.ui.cli.cli.RunCommand")
    mock_command.return_value.execute.side_effect = RuntimeError("boom")

    with pytest.raises(SystemExit) as excinfo:
        _ = main(["run", str(script)])

    assert excinfo.value.code == 1


def test_keyboard_interrupt_exits_with_130(script: Path, mocker: MockerFixture) -> None:
    mock_command = mocker.patch("jitmod.ui.cli.cli.RunCommand")
    mock_command.return_value.execute.side_effect = KeyboardInterrupt

    with pytest.raises(SystemExit) as excinfo:
        _ = main(["run", str(script)])

    assert excinfo.value.code == 130


def test_end_to_end_transform(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Without mocks the transform subcommand prints the generated code."""

    source = tmp_path / "value.pym"
    _ = source.write_text("export default 41 + 1\n", encoding="utf-8")

    assert main(["transform", str(source), "--cache-dir", str(tmp_path / "cache")]) == 0

    assert "default = 41 + 1" in capsys.readouterr().out
