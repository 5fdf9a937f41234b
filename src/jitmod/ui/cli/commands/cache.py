"""Cache maintenance command implementation for the CLI."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import final

from jitmod.config import detect_project_root, load_options
from jitmod.features.cache import FileCacheStore
from jitmod.ui.cli.args.options import CacheArgs
from jitmod.ui.cli.display.cache import CacheDisplay


@final
class CacheCommand:
    """Command inspecting or cleaning the transform cache of the current project."""

    def __init__(self, args: CacheArgs, display: CacheDisplay | None = None) -> None:
        self.args = args
        self.display = display or CacheDisplay()

    def execute(self) -> int:
        """Execute the cache command and return the number of removed entries."""

        project_root = detect_project_root()
        options = load_options(
            project_root=project_root or Path.cwd(),
            **self.args.flags.overrides(),
        )
        store = FileCacheStore.from_options(options, project_root=project_root)

        if self.args.action == "info":
            self.display.show_stats(store.stats())
            return 0

        if not store.enabled:
            self.display.show_disabled(store.disabled_reason)
            return 0

        if self.args.action == "clear":
            removed = store.clear()
        else:
            removed = store.prune(timedelta(days=self.args.max_age_days))
        self.display.show_removed(self.args.action, removed)
        return removed
