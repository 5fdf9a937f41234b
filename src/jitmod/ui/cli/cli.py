"""Command line interface for jitmod."""

import sys
from collections.abc import Sequence
from typing import final

from jitmod.platform.logging import logger
from jitmod.shared.errors import LoaderError
from jitmod.ui.cli.args import ArgumentParser
from jitmod.ui.cli.args.options import CacheArgs, CLIArgs, RunArgs
from jitmod.ui.cli.commands import CacheCommand, RunCommand, TransformCommand


@final
class CommandProcessor:
    """Command line interface processor."""

    @staticmethod
    def process_command(args_list: Sequence[str] | None = None) -> None:
        """Process command line arguments.

        Args:
            args_list: List of command line arguments (for testing).
        """
        try:
            args: CLIArgs = ArgumentParser.process_args(args_list)

            if isinstance(args, RunArgs):
                _ = RunCommand(args).execute()
                return

            if isinstance(args, CacheArgs):
                _ = CacheCommand(args).execute()
                return

            _ = TransformCommand(args).execute()
            return

        except KeyboardInterrupt:
            logger.info("\nOperation cancelled by user")
            sys.exit(130)
        except LoaderError as e:
            logger.error("%s", e)
            sys.exit(1)
        except Exception as e:
            logger.error("An unexpected error occurred: %s", str(e))
            logger.debug("Traceback for the unexpected error", exc_info=True)
            sys.exit(1)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Returns:
        int: Process exit code (0 on success). Failures exit through
        ``sys.exit(...)`` inside command processing, so this return is only
        reached when the command completes successfully.
    """
    CommandProcessor.process_command(argv)
    return 0
