"""Run command implementation for the CLI."""

from __future__ import annotations

import asyncio
import sys
from typing import final

from jitmod.application import create_loader
from jitmod.platform.logging import logger
from jitmod.shared.errors import AsyncModuleError
from jitmod.ui.cli.args.options import RunArgs


@final
class RunCommand:
    """Command running a script as ``__main__`` through a fresh loader."""

    def __init__(self, args: RunArgs) -> None:
        self.args = args

    def execute(self) -> int:
        """Execute the run command.

        Scripts using top-level ``await`` are retried on a new event loop.
        """
        script = self.args.script
        saved_argv = sys.argv
        sys.argv = [str(script), *self.args.script_args]
        try:
            with create_loader(script, **self.args.flags.overrides()) as loader:
                try:
                    _ = loader.run_main(str(script))
                except AsyncModuleError:
                    logger.debug("Running %s on the event loop", script)
                    _ = asyncio.run(loader.run_main_async(str(script)))
        finally:
            sys.argv = saved_argv
        return 0
