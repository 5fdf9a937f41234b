"""Tests for the CLI rich displays."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

from rich.console import Console

from jitmod.features.cache import CacheStats
from jitmod.ui.cli.display import CacheDisplay, TransformDisplay


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=120, color_system=None), buffer


def test_transform_display_prints_code() -> None:
    console, buffer = _console()

    TransformDisplay(console).show_code(Path("/project/mod.pym"), "default = 1\n")

    output = buffer.getvalue()
    assert "# /project/mod.pym" in output
    assert "default = 1" in output


def test_cache_display_stats() -> None:
    console, buffer = _console()

    CacheDisplay(console).show_stats(
        CacheStats(directory=Path("/tmp/cache"), enabled=True, entries=3, total_bytes=2048)
    )

    output = buffer.getvalue()
    assert "/tmp/cache" in output
    assert "3" in output
    assert "2.0 KiB" in output
    assert "yes" in output


def test_cache_display_messages() -> None:
    console, buffer = _console()
    display = CacheDisplay(console)

    display.show_removed("prune", 1)
    display.show_removed("clear", 4)
    display.show_disabled(None)

    output = buffer.getvalue()
    assert "Prune: removed 1 entry" in output
    assert "Clear: removed 4 entries" in output
    assert "Cache is disabled: unknown reason" in output
