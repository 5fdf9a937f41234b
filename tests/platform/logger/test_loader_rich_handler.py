"""Tests for the ``LoaderRichHandler`` event rendering."""

from __future__ import annotations

import logging
from io import StringIO
from typing import Any

from rich.console import Console
from rich.text import Text

from jitmod.platform.logging import LoaderRichHandler, set_console_level, setup_logger


def _make_handler() -> LoaderRichHandler:
    """Create a handler instance with an in-memory console."""

    console = Console(file=StringIO(), force_terminal=True, soft_wrap=True)
    return LoaderRichHandler(console=console)


def _build_record(msg: str = "", **extras: Any) -> logging.LogRecord:
    """Create a ``LogRecord`` populated with loader extras for testing."""

    record = logging.LogRecord(
        name="jitmod",
        level=logging.DEBUG,
        pathname="test",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extras.items():
        setattr(record, key, value)
    return record


def _render(**extras: Any) -> str:
    handler = _make_handler()
    record = _build_record(**extras)
    rendered = handler.render_message(record, record.getMessage())
    assert isinstance(rendered, Text)
    return rendered.plain


def test_render_message_truncates_long_absolute_paths() -> None:
    """Long paths keep only their trailing segments behind an ellipsis."""

    plain = _render(loader_event="execute", path="/home/dev/project/src/app/views/page.pym")

    assert "Executed" in plain
    assert "…/src/app/views/page.pym" in plain
    assert "/home/dev" not in plain


def test_render_message_keeps_short_paths() -> None:
    plain = _render(loader_event="resolve", path="/srv/a.py")

    assert "Resolved /srv/a.py" in plain


def test_render_message_handles_windows_paths() -> None:
    """Windows-style paths retain backslash separators."""

    plain = _render(loader_event="native", path="C:\\proj\\mod.pym")

    assert "C:\\proj\\mod.pym" in plain


def test_render_message_details() -> None:
    """Cache key, duration and reason are listed after the path."""

    plain = _render(
        loader_event="cache.write",
        path="/srv/a.pym",
        cache_key="abcdef0123456789" * 4,
        duration_ms=1.234,
        reason="fresh",
    )

    assert "Cached" in plain
    assert "(key=abcdef012345, 1.23 ms, fresh)" in plain


def test_render_message_without_path_uses_message() -> None:
    plain = _render(msg="Installed import hook", loader_event="hook.install")

    assert "Import hook installed: Installed import hook" in plain


def test_unknown_events_use_their_name() -> None:
    plain = _render(loader_event="custom.event", path="/srv/a.py")

    assert "custom.event" in plain


def test_plain_records_fall_back_to_rich() -> None:
    handler = _make_handler()
    record = _build_record("plain message")

    rendered = handler.render_message(record, "plain message")

    assert isinstance(rendered, Text)
    assert rendered.plain == "plain message"


def test_set_console_level_adjusts_rich_handler() -> None:
    logger = setup_logger()
    try:
        set_console_level(logging.DEBUG)
        levels = [handler.level for handler in logger.handlers if isinstance(handler, LoaderRichHandler)]
        assert levels == [logging.DEBUG]
    finally:
        _ = setup_logger()


def test_setup_logger_with_file(tmp_path: Any) -> None:
    log_file = tmp_path / "logs" / "jitmod.log"
    logger = setup_logger(log_file=log_file)
    try:
        logger.debug("written to file")
        for handler in logger.handlers:
            handler.flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        _ = setup_logger()
