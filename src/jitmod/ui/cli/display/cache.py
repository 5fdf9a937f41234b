"""Display utilities for cache maintenance results."""

from __future__ import annotations

from typing import final

from rich.console import Console
from rich.table import Table

from jitmod.features.cache import CacheStats


def _format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"


@final
class CacheDisplay:
    """Render cache statistics and maintenance outcomes in the CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def show_stats(self, stats: CacheStats) -> None:
        table = Table(title="Transform cache", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Directory", str(stats.directory) if stats.directory else "-")
        table.add_row("Enabled", "[green]yes[/green]" if stats.enabled else "[yellow]no[/yellow]")
        table.add_row("Entries", str(stats.entries))
        table.add_row("Size", _format_bytes(stats.total_bytes))
        self.console.print(table)

    def show_removed(self, action: str, removed: int) -> None:
        noun = "entry" if removed == 1 else "entries"
        self.console.print(f"[green]{action.capitalize()}: removed {removed} {noun}[/green]")

    def show_disabled(self, reason: str | None) -> None:
        self.console.print(f"[yellow]Cache is disabled: {reason or 'unknown reason'}[/yellow]")
