"""Where: src/jitmod/platform/logging/handlers.py
What: Rich console handler that renders structured loader events.
Why: Keep loader diagnostics readable without coupling features to Rich.
"""

from __future__ import annotations

import logging
from pathlib import PurePath, PurePosixPath, PureWindowsPath
from typing import Any, ClassVar

from typing_extensions import override

from rich.console import ConsoleRenderable
from rich.style import Style
from rich.text import Text
from rich.logging import RichHandler


class LoaderRichHandler(RichHandler):
    """Rich handler that displays loader events with icons and compact paths."""

    _EVENT_STYLES: ClassVar[dict[str, tuple[str, str]]] = {
        "resolve": ("🔎", "cyan"),
        "native": ("📦", "blue"),
        "transform": ("🛠", "magenta"),
        "transform.error": ("⛔", "red"),
        "cache.hit": ("♻️", "green"),
        "cache.miss": ("∅", "yellow"),
        "cache.write": ("💾", "green"),
        "cache.disabled": ("⚠️", "yellow"),
        "execute": ("▶", "blue"),
        "execute.error": ("❌", "red"),
        "hook.install": ("🔌", "cyan"),
        "hook.remove": ("🔌", "yellow"),
    }
    _EVENT_LABELS: ClassVar[dict[str, str]] = {
        "resolve": "Resolved",
        "native": "Native load",
        "transform": "Transformed",
        "transform.error": "Transform failed",
        "cache.hit": "Cache hit",
        "cache.miss": "Cache miss",
        "cache.write": "Cached",
        "cache.disabled": "Cache disabled",
        "execute": "Executed",
        "execute.error": "Execution failed",
        "hook.install": "Import hook installed",
        "hook.remove": "Import hook removed",
    }
    _PATH_SEGMENT_LIMIT: ClassVar[int] = 4

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs["show_time"] = False
        kwargs["show_path"] = False
        kwargs["rich_tracebacks"] = True
        kwargs["markup"] = False
        kwargs["omit_repeated_times"] = False
        super().__init__(*args, **kwargs)

    def _format_path(self, path: str) -> Text:
        """Format a path with colored separators, keeping only the trailing segments."""

        pure_path = self._to_pure_path(path)
        separator = "\\" if isinstance(pure_path, PureWindowsPath) else "/"
        anchor = pure_path.anchor
        body_parts = [part for part in pure_path.parts if part and part != anchor]

        truncated = len(body_parts) > self._PATH_SEGMENT_LIMIT
        if truncated:
            body_parts = body_parts[-self._PATH_SEGMENT_LIMIT:]

        display = ""
        if truncated:
            display = "…" + separator
        elif anchor:
            display = anchor
        display += separator.join(body_parts)

        text = Text()
        for char in display or ".":
            color = "magenta" if char in {separator, "…"} else "white"
            _ = text.append(char, style=Style(color=color))
        return text

    @staticmethod
    def _to_pure_path(raw_path: str) -> PurePath:
        if "\\" in raw_path:
            return PureWindowsPath(raw_path)
        return PurePosixPath(raw_path)

    def _render_loader_event(self, record: logging.LogRecord, message: str) -> Text | None:
        """Render records carrying a ``loader_event`` extra."""

        event = getattr(record, "loader_event", None)
        if not isinstance(event, str):
            return None

        icon, color = self._EVENT_STYLES.get(event, ("ℹ️", "blue"))
        text = Text()
        _ = text.append(f"{icon} ", style=Style(color=color, bold=True))

        body = Text(style=Style(color=color))
        _ = body.append(self._EVENT_LABELS.get(event, event))

        path = getattr(record, "path", None)
        if path:
            _ = body.append(" ")
            _ = body.append_text(self._format_path(str(path)))

        details: list[str] = []
        key = getattr(record, "cache_key", None)
        if isinstance(key, str) and key:
            details.append(f"key={key[:12]}")
        duration_ms = getattr(record, "duration_ms", None)
        if isinstance(duration_ms, (int, float)):
            details.append(f"{duration_ms:.2f} ms")
        reason = getattr(record, "reason", None)
        if reason:
            details.append(str(reason))
        if details:
            _ = body.append(" (" + ", ".join(details) + ")")
        elif not path and message:
            _ = body.append(f": {message}")

        _ = text.append_text(body)
        return text

    @override
    def render_message(self, record: logging.LogRecord, message: str) -> ConsoleRenderable:
        event_text = self._render_loader_event(record, message)
        if event_text is not None:
            return event_text
        return super().render_message(record, message)


__all__ = ["LoaderRichHandler"]
