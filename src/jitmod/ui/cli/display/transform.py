"""Display utilities for generated code."""

from __future__ import annotations

from pathlib import Path
from typing import final

from rich.console import Console
from rich.syntax import Syntax


@final
class TransformDisplay:
    """Render transformed code with syntax highlighting."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def show_code(self, path: Path, code: str) -> None:
        """Print ``code`` generated for ``path``."""

        self.console.print(f"[bold]# {path}[/bold]")
        self.console.print(Syntax(code, "python", line_numbers=True, word_wrap=False))
